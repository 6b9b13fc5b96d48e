from __future__ import annotations

import re
from typing import List

# "and then" is listed first so it splits once rather than leaving "then ..."
_DELIMITER_RE = re.compile(r"\s+(?:and\s+then|and|then)\s+", re.IGNORECASE)


def split_chain(transcript: str) -> List[str]:
    """Split a multi-intent utterance into ordered sub-commands.

    Delimiters inside quoted statute names or queries are split as well.
    """
    text = (transcript or "").strip()
    if not text:
        return []
    parts = [p.strip() for p in _DELIMITER_RE.split(text)]
    return [p for p in parts if p] or [text]


def is_command_chain(transcript: str) -> bool:
    return len(split_chain(transcript)) > 1


__all__ = ["split_chain", "is_command_chain"]
