from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from lark_assist.cache import ResponseCache, make_cache_key
from lark_assist.config import get_settings
from lark_assist.observability.logging import preview
from lark_assist.providers.client import AudioResponse
from lark_assist.providers.errors import ParseError

if TYPE_CHECKING:
    from lark_assist.providers.client import LarkApiClient

logger = logging.getLogger(__name__)

LEGAL_ENDPOINT = "/openai/legal"
THREAT_ENDPOINT = "/openai/threat"
TACTICAL_ENDPOINT = "/openai/tactical"
GENERAL_ENDPOINT = "/openai/general"
MIRANDA_ENDPOINT = "/openai/miranda"
TTS_ENDPOINT = "/openai/tts"


class CommandLookups:
    """Backend lookups for the domain handlers, served through the response cache.

    Failures surface as `LarkApiError` subclasses carrying a user-facing
    message; failed lookups are never cached.
    """

    def __init__(
        self,
        client: "LarkApiClient",
        cache: ResponseCache[str],
        audio_cache: Optional[ResponseCache[AudioResponse]] = None,
    ):
        self.client = client
        self.cache = cache
        self.audio_cache = audio_cache if audio_cache is not None else ResponseCache()

    async def _lookup(self, endpoint: str, field: str, value: str) -> str:
        key = make_cache_key(endpoint, value)

        async def _produce() -> str:
            logger.info("[LOOKUP] %s for: %s", endpoint, preview(value))
            data = await self.client.post_envelope(endpoint, {field: value})
            result = data.get("result")
            if not isinstance(result, str):
                raise ParseError(f"{endpoint} response has no result text")
            return result

        return await self.cache.fetch_cached(key, _produce)

    async def get_legal_information(self, statute: str) -> str:
        return await self._lookup(LEGAL_ENDPOINT, "statute", statute)

    async def assess_threat(self, situation: str) -> str:
        return await self._lookup(THREAT_ENDPOINT, "situation", situation)

    async def assess_tactical_situation(self, situation: str) -> str:
        return await self._lookup(TACTICAL_ENDPOINT, "situation", situation)

    async def get_general_knowledge(self, query: str) -> str:
        return await self._lookup(GENERAL_ENDPOINT, "query", query)

    async def get_miranda_rights(self, language: str = "english") -> str:
        return await self._lookup(MIRANDA_ENDPOINT, "language", language)

    async def synthesize_speech(self, text: str, voice: Optional[str] = None) -> AudioResponse:
        voice = voice or get_settings().tts_voice
        key = make_cache_key(TTS_ENDPOINT, voice, text)

        async def _produce() -> AudioResponse:
            clip = await self.client.post_audio(TTS_ENDPOINT, {"text": text, "voice": voice})
            logger.info("[TTS] synthesized speech", extra={"voice": voice, "server_cache_hit": clip.cache_hit})
            return clip

        return await self.audio_cache.fetch_cached(key, _produce)


__all__ = [
    "CommandLookups",
    "LEGAL_ENDPOINT",
    "THREAT_ENDPOINT",
    "TACTICAL_ENDPOINT",
    "GENERAL_ENDPOINT",
    "MIRANDA_ENDPOINT",
    "TTS_ENDPOINT",
]
