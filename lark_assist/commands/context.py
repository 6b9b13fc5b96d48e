from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional

from lark_assist.config import get_settings

RECENT_THREAT_WINDOW_S = 300


@dataclass
class ThreatContext:
    location: Optional[str] = None
    updated_at: Optional[float] = None
    last_assessment: Optional[str] = None
    assessed_at: Optional[float] = None


@dataclass(frozen=True)
class ContextEntry:
    command: str
    action: str
    at: float


class CommandContext:
    """Short-lived conversational memory for one session.

    Language preference lasts for the session. The last statute, the threat
    context and the command history expire after `timeout_s` without use.
    """

    def __init__(
        self,
        *,
        timeout_s: Optional[int] = None,
        max_length: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        s = get_settings()
        self.timeout_s = s.context_timeout_s if timeout_s is None else timeout_s
        self.max_length = max(1, s.context_max_length if max_length is None else max_length)
        self._clock = clock
        self._language: Optional[str] = None
        self._last_statute: Optional[str] = None
        self._statute_at: Optional[float] = None
        self._threat = ThreatContext()
        self._history: Deque[ContextEntry] = deque(maxlen=self.max_length)

    def _fresh(self, ts: Optional[float]) -> bool:
        return ts is not None and self._clock() - ts < self.timeout_s

    # Language
    def get_language_preference(self) -> Optional[str]:
        return self._language

    def set_language_preference(self, language: str) -> None:
        self._language = language

    # Statutes
    def get_last_statute(self) -> Optional[str]:
        return self._last_statute if self._fresh(self._statute_at) else None

    def set_last_statute(self, statute: str) -> None:
        self._last_statute = statute
        self._statute_at = self._clock()

    # Threats
    def update_threat_context(self, location: Optional[str] = None) -> None:
        if location:
            self._threat.location = location
        self._threat.updated_at = self._clock()

    def record_threat_assessment(self, assessment: str) -> None:
        self._threat.last_assessment = assessment
        self._threat.assessed_at = self._clock()

    def is_recent_threat_assessment(self, window_s: float = RECENT_THREAT_WINDOW_S) -> bool:
        ts = self._threat.assessed_at
        return ts is not None and self._clock() - ts < window_s

    def get_last_threat_assessment(self) -> Optional[ThreatContext]:
        if self._threat.assessed_at is None:
            return None
        return ThreatContext(**vars(self._threat))

    def get_threat_location(self) -> Optional[str]:
        return self._threat.location if self._fresh(self._threat.updated_at) else None

    # History
    def add_command(self, command: str, action: str) -> None:
        self._history.append(ContextEntry(command=command, action=action, at=self._clock()))

    def recent_commands(self) -> List[ContextEntry]:
        return [e for e in self._history if self._fresh(e.at)]

    def clear(self) -> None:
        self._language = None
        self._last_statute = None
        self._statute_at = None
        self._threat = ThreatContext()
        self._history.clear()


__all__ = ["CommandContext", "ContextEntry", "ThreatContext", "RECENT_THREAT_WINDOW_S"]
