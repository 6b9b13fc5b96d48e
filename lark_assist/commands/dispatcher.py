from __future__ import annotations

import dataclasses
import logging
import time
from typing import Awaitable, Callable, Dict, Optional

from lark_assist.commands.context import CommandContext
from lark_assist.commands.lookups import CommandLookups
from lark_assist.commands.offline import offline_statute_summary
from lark_assist.commands.types import CommandAction, ExecutionResult, ResolvedCommand
from lark_assist.providers.errors import ApiTimeoutError, NetworkError, user_message_for

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "english"
REPHRASE_MESSAGE = "I'm not sure how to process that command. Could you please rephrase it?"

Handler = Callable[[ResolvedCommand], Awaitable[ExecutionResult]]


class ExecutionDispatcher:
    """Maps a resolved action to its domain handler.

    Every `CommandAction` member must have a handler; tags outside the enum
    take the general-query path. `execute` never raises.
    """

    def __init__(self, lookups: CommandLookups, context: CommandContext):
        self.lookups = lookups
        self.context = context
        self._handlers: Dict[CommandAction, Handler] = {
            CommandAction.MIRANDA: self._miranda,
            CommandAction.STATUTE: self._statute,
            CommandAction.THREAT: self._threat,
            CommandAction.TACTICAL: self._tactical,
            CommandAction.GENERAL_QUERY: self._general_query,
            CommandAction.UNKNOWN: self._fallback,
        }
        missing = set(CommandAction) - set(self._handlers)
        if missing:
            raise TypeError(f"no handler for actions: {sorted(a.value for a in missing)}")

    async def execute(self, command: ResolvedCommand) -> ExecutionResult:
        logger.info("[EXEC] executing command", extra={"action": command.action_value, "tier": command.resolution_tier.value})
        try:
            if not command.command.strip():
                return ExecutionResult.succeeded(
                    dataclasses.replace(command, action=CommandAction.GENERAL_QUERY), REPHRASE_MESSAGE
                )
            action = CommandAction.parse(command.action)
            handler = self._handlers.get(action) if action is not None else None
            if handler is None:
                logger.warning("[EXEC] unrecognized action, answering as general query", extra={"action": command.action_value})
                handler = self._fallback
            return await handler(command)
        except Exception as exc:  # noqa: BLE001
            logger.error("[EXEC] command failed: %s", exc, extra={"action": command.action_value})
            return ExecutionResult.failed(command, user_message_for(exc))

    @staticmethod
    async def _fetch(command: ResolvedCommand, lookup: Callable[[], Awaitable[str]]) -> str:
        if command.prefetched_result is not None:
            return command.prefetched_result
        return await lookup()

    async def _miranda(self, command: ResolvedCommand) -> ExecutionResult:
        language = (
            command.parameters.get("language")
            or self.context.get_language_preference()
            or DEFAULT_LANGUAGE
        )
        self.context.set_language_preference(language)
        return ExecutionResult.succeeded(
            command,
            f"Miranda rights will be read in {language}",
            metadata={"language": language},
        )

    async def _statute(self, command: ResolvedCommand) -> ExecutionResult:
        statute = command.parameters.get("statute")
        if statute:
            self.context.set_last_statute(statute)
            try:
                result = await self._fetch(command, lambda: self.lookups.get_legal_information(statute))
            except (NetworkError, ApiTimeoutError):
                summary = offline_statute_summary(statute)
                if summary is None:
                    raise
                logger.info("[EXEC] serving offline statute reference", extra={"statute": statute})
                return ExecutionResult.succeeded(command, summary, metadata={"statute": statute, "offline": True})
            return ExecutionResult.succeeded(command, result, metadata={"statute": statute})

        last_statute = self.context.get_last_statute()
        if last_statute:
            result = await self._fetch(command, lambda: self.lookups.get_legal_information(last_statute))
            return ExecutionResult.succeeded(command, result, metadata={"statute": last_statute})

        result = await self._fetch(command, lambda: self.lookups.get_general_knowledge(command.command))
        return ExecutionResult.succeeded(command, result)

    async def _threat(self, command: ResolvedCommand) -> ExecutionResult:
        location = command.parameters.get("location")
        self.context.update_threat_context(location)

        prefix = ""
        if self.context.is_recent_threat_assessment():
            last = self.context.get_last_threat_assessment()
            if last is not None and last.assessed_at:
                prefix = f"Recent threat assessment from {time.strftime('%H:%M:%S', time.localtime(last.assessed_at))}: "

        situation = command.parameters.get("threat") or command.command
        assessment = await self._fetch(command, lambda: self.lookups.assess_threat(situation))
        self.context.record_threat_assessment(assessment)

        metadata: Optional[Dict[str, str]] = None
        location = location or self.context.get_threat_location()
        if location:
            metadata = {"location": location}
        return ExecutionResult.succeeded(command, prefix + assessment, metadata=metadata)

    async def _tactical(self, command: ResolvedCommand) -> ExecutionResult:
        result = await self._fetch(command, lambda: self.lookups.assess_tactical_situation(command.command))
        return ExecutionResult.succeeded(command, result)

    async def _general_query(self, command: ResolvedCommand) -> ExecutionResult:
        query = command.parameters.get("query") or command.command
        result = await self._fetch(command, lambda: self.lookups.get_general_knowledge(query))
        return ExecutionResult.succeeded(command, result)

    async def _fallback(self, command: ResolvedCommand) -> ExecutionResult:
        # unknown and unrecognized actions are answered as general queries
        as_query = dataclasses.replace(command, action=CommandAction.GENERAL_QUERY)
        result = await self._fetch(command, lambda: self.lookups.get_general_knowledge(command.command))
        return ExecutionResult.succeeded(as_query, result)


__all__ = ["ExecutionDispatcher", "DEFAULT_LANGUAGE", "REPHRASE_MESSAGE"]
