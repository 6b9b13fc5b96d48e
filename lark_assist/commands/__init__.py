from lark_assist.commands.types import (
    CommandAction,
    CommandRequest,
    ExecutionResult,
    PipelineState,
    ResolutionMiss,
    ResolutionTier,
    ResolvedCommand,
)

__all__ = [
    "CommandAction",
    "CommandRequest",
    "ExecutionResult",
    "PipelineState",
    "ResolutionMiss",
    "ResolutionTier",
    "ResolvedCommand",
]
