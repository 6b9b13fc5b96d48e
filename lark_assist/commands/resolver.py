"""
Tiered command resolution.

Tiers are tried in a fixed order and the first success wins:

1. offline rule table (no I/O)
2. local keyword matcher (no I/O)
3. remote interpretation, only when the connectivity check passes

Every tier returns either a `ResolvedCommand` or a `ResolutionMiss`; no tier
raises past `resolve`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence

from lark_assist.commands.matcher import match_command
from lark_assist.commands.offline import process_offline_command
from lark_assist.commands.types import (
    CommandAction,
    Resolution,
    ResolutionMiss,
    ResolutionTier,
    ResolvedCommand,
    clean_parameters,
)
from lark_assist.config import get_settings
from lark_assist.observability.logging import preview
from lark_assist.providers.errors import LarkApiError, ParseError, user_message_for

if TYPE_CHECKING:
    from lark_assist.providers.client import LarkApiClient
    from lark_assist.reliability.connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

PROCESS_COMMAND_ENDPOINT = "/openai/process-command"
NO_CONNECTION_MESSAGE = "No internet connection. Only basic commands are available."

Matcher = Callable[[str], Optional[ResolvedCommand]]
TierResolver = Callable[[str], Awaitable[Resolution]]


async def first_success(transcript: str, resolvers: Sequence[TierResolver]) -> Resolution:
    """Run resolvers in order; return the first ResolvedCommand, else the last miss."""
    outcome: Resolution = ResolutionMiss(command=transcript, error="No resolver could interpret the command.")
    for resolver in resolvers:
        outcome = await resolver(transcript)
        if isinstance(outcome, ResolvedCommand):
            return outcome
    return outcome


def matcher_tier(matcher: Matcher, name: str) -> TierResolver:
    async def _resolve(transcript: str) -> Resolution:
        resolved = matcher(transcript)
        if resolved is None:
            return ResolutionMiss(command=transcript, error=f"no {name} match")
        logger.info("[RESOLVE] %s match", name, extra={"action": resolved.action_value})
        return resolved

    return _resolve


def downgraded_general_query(transcript: str) -> ResolvedCommand:
    return ResolvedCommand(
        command=transcript,
        action=CommandAction.GENERAL_QUERY,
        parameters={"query": transcript},
        resolution_tier=ResolutionTier.REMOTE,
    )


class TieredCommandResolver:
    def __init__(
        self,
        client: "LarkApiClient",
        connectivity: "ConnectivityMonitor",
        *,
        offline_matcher: Matcher = process_offline_command,
        local_matcher: Matcher = match_command,
        connectivity_retries: Optional[int] = None,
    ) -> None:
        self.client = client
        self.connectivity = connectivity
        self.connectivity_retries = (
            get_settings().connectivity_retries if connectivity_retries is None else connectivity_retries
        )
        self.tiers: Sequence[TierResolver] = (
            matcher_tier(offline_matcher, ResolutionTier.OFFLINE.value),
            matcher_tier(local_matcher, ResolutionTier.LOCAL.value),
            self.resolve_remote,
        )

    async def resolve(self, transcript: str) -> Resolution:
        try:
            return await first_success(transcript, self.tiers)
        except Exception as exc:  # noqa: BLE001
            logger.exception("[RESOLVE] resolution failed")
            return ResolutionMiss(command=transcript, error=user_message_for(exc))

    async def resolve_remote(self, transcript: str) -> Resolution:
        if not await self.connectivity.check_connectivity(self.connectivity_retries):
            logger.info("[RESOLVE] no internet connection, limited to offline commands")
            return ResolutionMiss(command=transcript, error=NO_CONNECTION_MESSAGE)

        logger.info("[RESOLVE] remote interpretation for: %s", preview(transcript))
        try:
            data = await self.client.post_envelope(PROCESS_COMMAND_ENDPOINT, {"transcript": transcript})
            return self._parse_interpretation(transcript, data)
        except ParseError as exc:
            logger.warning("[RESOLVE] unparseable interpretation, retrying as general query: %s", exc)
            return downgraded_general_query(transcript)
        except LarkApiError as exc:
            logger.error("[RESOLVE] remote interpretation failed: %s", exc)
            return ResolutionMiss(
                command=transcript,
                error=exc.user_message,
                action=CommandAction.GENERAL_QUERY,
                parameters={"query": transcript},
            )

    @staticmethod
    def _parse_interpretation(transcript: str, data: dict) -> ResolvedCommand:
        raw_action = data.get("action")
        if not isinstance(raw_action, str) or not raw_action.strip():
            raise ParseError("interpretation has no action")

        raw_params = data.get("parameters")
        command = data.get("command")
        result = data.get("result")
        prefetched = result if data.get("executed") and isinstance(result, str) else None

        return ResolvedCommand(
            command=command.strip() if isinstance(command, str) and command.strip() else transcript,
            action=CommandAction.parse(raw_action) or raw_action.strip(),
            parameters=clean_parameters(raw_params if isinstance(raw_params, dict) else None),
            resolution_tier=ResolutionTier.REMOTE,
            prefetched_result=prefetched,
        )


__all__ = [
    "first_success",
    "matcher_tier",
    "downgraded_general_query",
    "TieredCommandResolver",
    "NO_CONNECTION_MESSAGE",
    "PROCESS_COMMAND_ENDPOINT",
]
