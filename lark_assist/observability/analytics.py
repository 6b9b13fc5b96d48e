"""Command analytics.

`CommandAnalytics` is the default in-process sink; it keeps a bounded
history of processed commands and derives a summary from it.
`AnalyticsRecorder` hands events to a sink without ever blocking or
failing the command that produced them.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import Counter, deque
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Optional

from lark_assist.observability.metrics import counter, histogram

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 200


@dataclass(frozen=True)
class CommandEvent:
    command: str
    success: bool
    response_time_ms: int
    confidence: float
    offline: bool
    command_type: str
    tier: Optional[str] = None


class CommandAnalytics:
    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        self._events: Deque[CommandEvent] = deque(maxlen=max(1, history_size))

    def record_command(self, event: CommandEvent) -> None:
        self._events.append(event)
        labels = {"type": event.command_type, "tier": event.tier or "none"}
        counter("command_processed", labels={**labels, "success": str(event.success).lower()})
        histogram("command_latency_ms", event.response_time_ms, labels=labels)

    def events(self) -> list[CommandEvent]:
        return list(self._events)

    def summary(self) -> Dict[str, Any]:
        total = len(self._events)
        if total == 0:
            return {
                "total": 0,
                "success_rate": 0.0,
                "avg_response_ms": 0.0,
                "offline": 0,
                "by_tier": {},
                "by_type": {},
            }
        successes = sum(1 for e in self._events if e.success)
        return {
            "total": total,
            "success_rate": round(successes / total, 4),
            "avg_response_ms": round(sum(e.response_time_ms for e in self._events) / total, 2),
            "offline": sum(1 for e in self._events if e.offline),
            "by_tier": dict(Counter(e.tier or "none" for e in self._events)),
            "by_type": dict(Counter(e.command_type for e in self._events)),
        }

    def clear(self) -> None:
        self._events.clear()


class AnalyticsRecorder:
    """One-way delivery of command events to an analytics sink.

    The sink may be a plain function or a coroutine function; coroutines are
    scheduled on the running loop and their failures logged.
    """

    def __init__(self, sink: Callable[[CommandEvent], Any]):
        self._sink = sink
        self._tasks: set = set()

    def record(self, event: CommandEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._deliver(event)
            return
        loop.call_soon(self._deliver, event)

    def _deliver(self, event: CommandEvent) -> None:
        try:
            outcome = self._sink(event)
        except Exception:  # noqa: BLE001
            logger.warning("[ANALYTICS] sink failed", extra={"event": asdict(event)}, exc_info=True)
            return
        if inspect.isawaitable(outcome):
            self._schedule(outcome, event)

    def _schedule(self, outcome: Awaitable[Any], event: CommandEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(outcome):
                outcome.close()
            logger.warning("[ANALYTICS] async sink needs a running event loop", extra={"event": asdict(event)})
            return
        task = asyncio.ensure_future(outcome, loop=loop)
        self._tasks.add(task)

        def _done(t: "asyncio.Future[Any]") -> None:
            self._tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.warning(
                    "[ANALYTICS] sink failed",
                    extra={"event": asdict(event)},
                    exc_info=t.exception(),
                )

        task.add_done_callback(_done)


__all__ = ["CommandEvent", "CommandAnalytics", "AnalyticsRecorder"]
