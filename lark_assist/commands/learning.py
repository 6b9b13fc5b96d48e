from __future__ import annotations

import difflib
import logging
import re
from typing import Dict, Iterable, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

PHRASE_CUTOFF = 0.9

KNOWN_PHRASES = (
    "read miranda rights",
    "read miranda rights in english",
    "read miranda rights in spanish",
    "read miranda rights in french",
    "read miranda rights in vietnamese",
    "read miranda rights in mandarin",
    "read miranda rights in arabic",
    "look up statute",
    "assess threat",
    "tactical assessment",
    "request backup",
)

# Frequent speech-to-text confusions for command vocabulary
COMMON_MISHEARINGS = {
    "marinda": "miranda",
    "miranda's": "miranda",
    "mirandas": "miranda",
    "spannish": "spanish",
    "threats": "threat",
}

_RIGHTS_RE = re.compile(r"\brights\b")
_STATUTE_NUMBER_RE = re.compile(r"\b\d{1,2}:\d{1,4}\b")

# Confusions that are also real words; replaced only when the rest of the
# utterance shows a command was meant.
CONTEXTUAL_MISHEARINGS: Dict[str, Tuple[str, Pattern[str]]] = {
    "veranda": ("miranda", _RIGHTS_RE),
    "statue": ("statute", _STATUTE_NUMBER_RE),
    "statues": ("statute", _STATUTE_NUMBER_RE),
    "stature": ("statute", _STATUTE_NUMBER_RE),
}


class CommandLearning:
    """Suggests corrected phrasings for misheard commands.

    Explicitly recorded corrections win over fuzzy phrase matches, which win
    over word-level replacements.
    """

    def __init__(self, known_phrases: Iterable[str] = KNOWN_PHRASES):
        self.known_phrases = [p.lower() for p in known_phrases]
        self._corrections: Dict[str, str] = {}

    @staticmethod
    def _normalize(text: str) -> str:
        return re.sub(r"\s+", " ", (text or "").strip().lower())

    def record_correction(self, heard: str, meant: str) -> None:
        heard_n = self._normalize(heard)
        meant_n = self._normalize(meant)
        if heard_n and meant_n and heard_n != meant_n:
            self._corrections[heard_n] = meant_n

    @staticmethod
    def _replace_word(word: str, text: str) -> str:
        if word in COMMON_MISHEARINGS:
            return COMMON_MISHEARINGS[word]
        contextual = CONTEXTUAL_MISHEARINGS.get(word)
        if contextual and contextual[1].search(text):
            return contextual[0]
        return word

    def suggest_correction(self, text: str) -> Optional[str]:
        normalized = self._normalize(text)
        if not normalized:
            return None

        learned = self._corrections.get(normalized)
        if learned:
            return learned

        if normalized in self.known_phrases:
            return normalized

        close = difflib.get_close_matches(normalized, self.known_phrases, n=1, cutoff=PHRASE_CUTOFF)
        if close:
            return close[0]

        words = normalized.split(" ")
        replaced = [self._replace_word(w, normalized) for w in words]
        if replaced != words:
            return " ".join(replaced)
        return None


__all__ = ["CommandLearning", "KNOWN_PHRASES", "COMMON_MISHEARINGS", "CONTEXTUAL_MISHEARINGS"]
