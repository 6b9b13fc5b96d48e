"""
Offline command rules.

Fixed phrasings that must resolve with zero connectivity. Each rule is a
pure function of the transcript; no rule performs I/O.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Callable, Optional, Tuple

from lark_assist.commands.types import CommandAction, ResolutionTier, ResolvedCommand

SUPPORTED_LANGUAGES = ("english", "spanish", "french", "vietnamese", "mandarin", "arabic")

LANGUAGE_ALIASES = {
    "espanol": "spanish",
    "español": "spanish",
    "chinese": "mandarin",
    "francais": "french",
    "français": "french",
}

STATUTE_NUMBER = r"\d{1,2}:\d{1,4}(?:\.\d+)?"

_MIRANDA_RE = re.compile(
    r"^(?:please\s+)?(?:(?:read|recite|give|play|say)\s+)?(?:the\s+|their\s+|them\s+)?"
    r"miranda(?:\s+rights)?(?:\s+(?:in|en)\s+(?P<language>[^\W\d_]+))?[.!?]*$"
)
_STATUTE_RE = re.compile(
    r"^(?:please\s+)?(?:(?:look\s*up|find|search(?:\s+for)?|show(?:\s+me)?|pull\s+up)\s+)?"
    r"(?:statute|r\.?\s?s\.?|la\.?\s*r\.?\s?s\.?)\s*(?P<statute>" + STATUTE_NUMBER + r")[.!?]*$"
)

# Reference titles for the most common Louisiana criminal statutes, served
# when the legal lookup cannot reach the backend.
OFFLINE_STATUTE_SUMMARIES = {
    "14:30": "La. R.S. 14:30 - First degree murder.",
    "14:35": "La. R.S. 14:35 - Simple battery.",
    "14:62": "La. R.S. 14:62 - Simple burglary.",
    "14:67": "La. R.S. 14:67 - Theft.",
    "14:98": "La. R.S. 14:98 - Operating a vehicle while intoxicated.",
    "14:108": "La. R.S. 14:108 - Resisting an officer.",
}


def normalize_language(word: Optional[str]) -> Optional[str]:
    if not word:
        return None
    lowered = word.strip().lower()
    lowered = LANGUAGE_ALIASES.get(lowered, lowered)
    return lowered if lowered in SUPPORTED_LANGUAGES else None


def offline_statute_summary(statute: Optional[str]) -> Optional[str]:
    if not statute:
        return None
    return OFFLINE_STATUTE_SUMMARIES.get(statute.strip())


def _normalize(transcript: str) -> str:
    return re.sub(r"\s+", " ", (transcript or "").strip().lower())


def match_miranda(text: str) -> Optional[ResolvedCommand]:
    m = _MIRANDA_RE.match(text)
    if not m:
        return None
    params = {}
    if m.group("language"):
        language = normalize_language(m.group("language"))
        if language is None:
            return None
        params["language"] = language
    return ResolvedCommand(
        command=text,
        action=CommandAction.MIRANDA,
        parameters=params,
        resolution_tier=ResolutionTier.OFFLINE,
    )


def match_statute(text: str) -> Optional[ResolvedCommand]:
    m = _STATUTE_RE.match(text)
    if not m:
        return None
    return ResolvedCommand(
        command=text,
        action=CommandAction.STATUTE,
        parameters={"statute": m.group("statute")},
        resolution_tier=ResolutionTier.OFFLINE,
    )


OFFLINE_RULES: Tuple[Callable[[str], Optional[ResolvedCommand]], ...] = (
    match_miranda,
    match_statute,
)


def process_offline_command(transcript: str) -> Optional[ResolvedCommand]:
    text = _normalize(transcript)
    if not text:
        return None
    for rule in OFFLINE_RULES:
        resolved = rule(text)
        if resolved is not None:
            return dataclasses.replace(resolved, command=transcript.strip())
    return None


__all__ = [
    "SUPPORTED_LANGUAGES",
    "STATUTE_NUMBER",
    "OFFLINE_STATUTE_SUMMARIES",
    "normalize_language",
    "offline_statute_summary",
    "process_offline_command",
]
