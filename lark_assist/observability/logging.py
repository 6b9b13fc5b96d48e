from __future__ import annotations

import json
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Keys that may carry officer speech or free text
_REDACTED_KEYS = ("transcript", "command", "query", "situation", "text", "result", "body")


def preview(text: str | None, limit: int = 30) -> str:
    if not text:
        return ""
    return text[:limit]


def safe_redact(event: Dict[str, Any]) -> Dict[str, Any]:
    redacted = dict(event) if isinstance(event, dict) else {}
    for key in _REDACTED_KEYS:
        if key in redacted:
            value = redacted.pop(key)
            redacted[f"{key}_len"] = len(value) if isinstance(value, str) else 0
    return redacted


def structured_log(event: Dict[str, Any]) -> None:
    try:
        safe_event = safe_redact(event)
        logger.info(json.dumps(safe_event, separators=(",", ":"), default=str))
    except Exception:
        # logging must never break the command path
        return


__all__ = ["preview", "structured_log", "safe_redact"]
