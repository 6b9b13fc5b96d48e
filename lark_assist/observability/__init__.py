from __future__ import annotations

from .logging import preview, structured_log, safe_redact
from .metrics import counter, histogram, event
from .analytics import AnalyticsRecorder, CommandAnalytics, CommandEvent

__all__ = [
    "preview",
    "structured_log",
    "safe_redact",
    "counter",
    "histogram",
    "event",
    "AnalyticsRecorder",
    "CommandAnalytics",
    "CommandEvent",
]
