"""
Command pipeline entry point.

utterance -> correction -> chain split -> tiered resolution -> dispatch.
All per-session mutable state lives on `CommandSession`, which is injected
so independent sessions never share caches or context.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from lark_assist.cache import ResponseCache
from lark_assist.commands.chain import split_chain
from lark_assist.commands.context import CommandContext
from lark_assist.commands.dispatcher import ExecutionDispatcher
from lark_assist.commands.learning import CommandLearning
from lark_assist.commands.lookups import CommandLookups
from lark_assist.commands.matcher import match_command
from lark_assist.commands.offline import process_offline_command
from lark_assist.commands.resolver import Matcher, TieredCommandResolver
from lark_assist.commands.types import (
    CommandAction,
    CommandRequest,
    ExecutionResult,
    PipelineState,
    ResolutionMiss,
    ResolutionTier,
)
from lark_assist.config import Settings, get_settings
from lark_assist.observability.analytics import AnalyticsRecorder, CommandAnalytics, CommandEvent
from lark_assist.observability.logging import preview
from lark_assist.providers.client import AudioResponse, LarkApiClient
from lark_assist.reliability.connectivity import ApiConfigStatus, ConnectivityMonitor

logger = logging.getLogger(__name__)

EMPTY_COMMAND_MESSAGE = "No command received."


@dataclass
class CommandSession:
    state: PipelineState = field(default_factory=PipelineState)
    context: CommandContext = field(default_factory=CommandContext)
    response_cache: ResponseCache[str] = field(default_factory=ResponseCache)
    audio_cache: ResponseCache[AudioResponse] = field(default_factory=ResponseCache)
    learning: CommandLearning = field(default_factory=CommandLearning)
    analytics: CommandAnalytics = field(default_factory=CommandAnalytics)


class CommandPipeline:
    def __init__(
        self,
        client: LarkApiClient,
        session: Optional[CommandSession] = None,
        *,
        settings: Optional[Settings] = None,
        offline_matcher: Matcher = process_offline_command,
        local_matcher: Matcher = match_command,
        analytics_sink: Optional[Callable[[CommandEvent], object]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client
        self.session = session or CommandSession()
        self.connectivity = ConnectivityMonitor(
            client,
            self.session.state,
            retry_delay_s=self.settings.connectivity_retry_delay_s,
            sleep=sleep,
        )
        self.lookups = CommandLookups(client, self.session.response_cache, self.session.audio_cache)
        self.resolver = TieredCommandResolver(
            client,
            self.connectivity,
            offline_matcher=offline_matcher,
            local_matcher=local_matcher,
            connectivity_retries=self.settings.connectivity_retries,
        )
        self.dispatcher = ExecutionDispatcher(self.lookups, self.session.context)
        self.recorder = AnalyticsRecorder(analytics_sink or self.session.analytics.record_command)

    @property
    def state(self) -> PipelineState:
        return self.session.state

    async def check_connectivity(self) -> bool:
        return await self.connectivity.check_connectivity(self.settings.connectivity_retries)

    async def check_api_configuration(self) -> ApiConfigStatus:
        return await self.connectivity.check_api_configuration()

    async def speak(self, text: str, voice: Optional[str] = None) -> AudioResponse:
        return await self.lookups.synthesize_speech(text, voice)

    def _apply_correction(self, transcript: str) -> str:
        corrected = self.session.learning.suggest_correction(transcript)
        if corrected and corrected != transcript.lower():
            logger.info("[PIPELINE] corrected command: %s -> %s", preview(transcript), preview(corrected))
            return corrected
        return transcript

    async def process(self, transcript: str) -> ExecutionResult:
        """Resolve and execute an utterance; chained commands return the last result."""
        request = CommandRequest(transcript=(transcript or "").strip())
        if not request.transcript:
            return ExecutionResult(command="", action=CommandAction.UNKNOWN.value, executed=False, error=EMPTY_COMMAND_MESSAGE)

        state = self.session.state
        if state.in_progress:
            logger.warning("[PIPELINE] command already in progress, proceeding")

        text = self._apply_correction(request.transcript)
        state.in_progress = True
        state.last_command = text
        try:
            parts = (split_chain(text) if self.settings.chaining_enabled else []) or [text]
            if len(parts) > 1:
                logger.info("[PIPELINE] command chain detected", extra={"parts": len(parts)})
            result = await self.process_single(parts[0])
            for part in parts[1:]:
                result = await self.process_single(part)
            return result
        except Exception as exc:  # noqa: BLE001
            logger.exception("[PIPELINE] error processing command")
            return ExecutionResult(
                command=text,
                action=CommandAction.UNKNOWN.value,
                executed=False,
                error=str(exc) or "Unknown error occurred",
            )
        finally:
            state.in_progress = False

    async def process_single(self, transcript: str) -> ExecutionResult:
        start_ts = time.monotonic()
        resolution = await self.resolver.resolve(transcript)

        tier: Optional[ResolutionTier] = None
        confidence = 0.0
        if isinstance(resolution, ResolutionMiss):
            result = ExecutionResult.from_miss(resolution)
        else:
            tier = resolution.resolution_tier
            confidence = resolution.confidence
            result = await self.dispatcher.execute(resolution)

        self.session.state.last_action = result.action
        self.session.context.add_command(transcript, result.action)
        self.recorder.record(
            CommandEvent(
                command=transcript,
                success=result.executed,
                response_time_ms=int((time.monotonic() - start_ts) * 1000),
                confidence=confidence,
                offline=self.session.state.offline if tier is None else tier is not ResolutionTier.REMOTE,
                command_type=result.action,
                tier=tier.value if tier else None,
            )
        )
        return result


__all__ = ["CommandPipeline", "CommandSession", "EMPTY_COMMAND_MESSAGE"]
