"""Local keyword matcher for common command phrasings."""

from __future__ import annotations

import difflib
import re
from typing import Dict, FrozenSet, Optional

from lark_assist.commands.offline import STATUTE_NUMBER, normalize_language
from lark_assist.commands.types import CommandAction, ResolutionTier, ResolvedCommand

KEYWORD_CUTOFF = 0.85

MIRANDA_KEYWORDS: FrozenSet[str] = frozenset({"miranda", "mirandize"})
STATUTE_KEYWORDS: FrozenSet[str] = frozenset({"statute", "statutes"})
THREAT_KEYWORDS: FrozenSet[str] = frozenset(
    {"threat", "suspicious", "weapon", "gun", "knife", "armed", "hostile", "dangerous", "danger"}
)
TACTICAL_KEYWORDS: FrozenSet[str] = frozenset(
    {"tactical", "backup", "perimeter", "breach", "flank", "containment"}
)

_EXACT_KEYWORDS = MIRANDA_KEYWORDS | STATUTE_KEYWORDS | THREAT_KEYWORDS | TACTICAL_KEYWORDS
# Only the legal vocabulary is matched fuzzily; threat and tactical words
# like "danger" or "breach" sit too close to everyday words.
_FUZZY_KEYWORDS = sorted(MIRANDA_KEYWORDS | STATUTE_KEYWORDS)
FUZZY_MIN_LENGTH = 5
# Real words within the fuzzy cutoff of the legal vocabulary
NEAR_MISS_WORDS: FrozenSet[str] = frozenset({"statue", "statues", "stature", "status"})

_STATUTE_REF_RE = re.compile(r"(?:\b(?:la\.?\s*)?r\.?\s?s\.?\s*)?\b(" + STATUTE_NUMBER + r")\b")
_LANGUAGE_RE = re.compile(r"\bin\s+([^\W\d_]+)")
_LOCATION_RE = re.compile(r"\b(?:at|near|outside|behind)\s+(?:the\s+)?(.+?)[.!?]*$")
_WORD_RE = re.compile(r"[a-z']+")


def _keyword_hits(text: str) -> FrozenSet[str]:
    hits = set()
    for word in _WORD_RE.findall(text):
        if word in _EXACT_KEYWORDS:
            hits.add(word)
            continue
        if len(word) < FUZZY_MIN_LENGTH or word in NEAR_MISS_WORDS:
            continue
        close = difflib.get_close_matches(word, _FUZZY_KEYWORDS, n=1, cutoff=KEYWORD_CUTOFF)
        if close:
            hits.add(close[0])
    return frozenset(hits)


def _resolved(transcript: str, action: CommandAction, parameters: Dict[str, str]) -> ResolvedCommand:
    return ResolvedCommand(
        command=transcript.strip(),
        action=action,
        parameters=parameters,
        resolution_tier=ResolutionTier.LOCAL,
    )


def match_command(transcript: str) -> Optional[ResolvedCommand]:
    text = re.sub(r"\s+", " ", (transcript or "").strip().lower())
    if not text:
        return None

    hits = _keyword_hits(text)

    if hits & MIRANDA_KEYWORDS:
        params: Dict[str, str] = {}
        lang_match = _LANGUAGE_RE.search(text)
        language = normalize_language(lang_match.group(1)) if lang_match else None
        if language:
            params["language"] = language
        return _resolved(transcript, CommandAction.MIRANDA, params)

    statute_ref = _STATUTE_REF_RE.search(text)
    if statute_ref:
        return _resolved(transcript, CommandAction.STATUTE, {"statute": statute_ref.group(1)})

    if hits & THREAT_KEYWORDS:
        params = {"threat": transcript.strip()}
        location = _LOCATION_RE.search(text)
        if location:
            params["location"] = location.group(1).strip()
        return _resolved(transcript, CommandAction.THREAT, params)

    if hits & TACTICAL_KEYWORDS:
        return _resolved(transcript, CommandAction.TACTICAL, {})

    if hits & STATUTE_KEYWORDS:
        return _resolved(transcript, CommandAction.STATUTE, {})

    return None


__all__ = ["match_command"]
