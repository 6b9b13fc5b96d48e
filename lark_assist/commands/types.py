from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

PARAMETER_KEYS = ("language", "statute", "threat", "query", "location")


class CommandAction(str, Enum):
    MIRANDA = "miranda"
    STATUTE = "statute"
    THREAT = "threat"
    TACTICAL = "tactical"
    GENERAL_QUERY = "general_query"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> Optional["CommandAction"]:
        """Return the matching action, or None for a tag outside the enum."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ResolutionTier(str, Enum):
    OFFLINE = "offline"
    LOCAL = "local"
    REMOTE = "remote"


TIER_CONFIDENCE = {
    ResolutionTier.OFFLINE: 1.0,
    ResolutionTier.LOCAL: 0.9,
    ResolutionTier.REMOTE: 0.7,
}


def clean_parameters(raw: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not raw:
        return {}
    cleaned: Dict[str, str] = {}
    for key in PARAMETER_KEYS:
        value = raw.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value.strip():
            cleaned[key] = value.strip()
    return cleaned


@dataclass(frozen=True)
class CommandRequest:
    transcript: str
    received_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ResolvedCommand:
    command: str
    # Raw tag from the remote service is kept when it falls outside the enum
    action: Union[CommandAction, str]
    parameters: Dict[str, str] = field(default_factory=dict)
    resolution_tier: ResolutionTier = ResolutionTier.LOCAL
    prefetched_result: Optional[str] = None

    @property
    def confidence(self) -> float:
        return TIER_CONFIDENCE[self.resolution_tier]

    @property
    def action_value(self) -> str:
        return self.action.value if isinstance(self.action, CommandAction) else str(self.action or "")


@dataclass(frozen=True)
class ResolutionMiss:
    command: str
    error: str
    action: CommandAction = CommandAction.UNKNOWN
    parameters: Dict[str, str] = field(default_factory=dict)


Resolution = Union[ResolvedCommand, ResolutionMiss]


class ExecutionResult(BaseModel):
    command: str
    action: str
    parameters: Dict[str, str] = Field(default_factory=dict)
    resolution_tier: Optional[ResolutionTier] = None
    executed: bool
    result: Optional[str] = None
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _failed_results_carry_error(self) -> "ExecutionResult":
        if not self.executed and not self.error:
            raise ValueError("error required when executed is false")
        return self

    @classmethod
    def succeeded(cls, command: ResolvedCommand, result: str, metadata: Optional[Dict[str, Any]] = None) -> "ExecutionResult":
        return cls(
            command=command.command,
            action=command.action_value,
            parameters=dict(command.parameters),
            resolution_tier=command.resolution_tier,
            executed=True,
            result=result,
            metadata=metadata,
        )

    @classmethod
    def failed(cls, command: ResolvedCommand, error: str) -> "ExecutionResult":
        return cls(
            command=command.command,
            action=command.action_value,
            parameters=dict(command.parameters),
            resolution_tier=command.resolution_tier,
            executed=False,
            error=error,
        )

    @classmethod
    def from_miss(cls, miss: ResolutionMiss) -> "ExecutionResult":
        return cls(
            command=miss.command,
            action=miss.action.value,
            parameters=dict(miss.parameters),
            executed=False,
            error=miss.error,
        )


@dataclass
class PipelineState:
    """Advisory per-session flags; `in_progress` never blocks a run."""

    in_progress: bool = False
    last_command: Optional[str] = None
    last_action: Optional[str] = None
    offline: bool = False


__all__ = [
    "CommandAction",
    "ResolutionTier",
    "TIER_CONFIDENCE",
    "PARAMETER_KEYS",
    "clean_parameters",
    "CommandRequest",
    "ResolvedCommand",
    "ResolutionMiss",
    "Resolution",
    "ExecutionResult",
    "PipelineState",
]
