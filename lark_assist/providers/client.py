"""Async HTTP client for the LARK backend API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from lark_assist.config import get_settings
from lark_assist.providers.errors import (
    ApiResponseError,
    ApiTimeoutError,
    NetworkError,
    ParseError,
    http_error_for_status,
)
from lark_assist.reliability.timeouts import enforce_timeout

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


@dataclass(frozen=True)
class AudioResponse:
    audio: bytes
    cache_hit: bool


class LarkApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_seconds: Optional[float] = None,
        connect_timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        s = get_settings()
        self.base_url = (base_url or s.api_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or s.request_timeout_s
        self.connect_timeout_seconds = connect_timeout_seconds or s.connect_timeout_s
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(self.timeout_seconds, connect=self.connect_timeout_seconds),
        )

    async def __aenter__(self) -> "LarkApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("[API] %s request to %s", method, path)
        try:
            return await enforce_timeout(
                lambda: self._client.request(method, self._url(path), **kwargs),
                self.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            logger.error("[API] Request timeout: %s", exc)
            raise ApiTimeoutError(str(exc)) from exc
        except httpx.HTTPError as exc:
            logger.error("[API] Network error: %s", exc)
            raise NetworkError(str(exc)) from exc

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.is_success:
            return
        api_error: Optional[str] = None
        try:
            data = resp.json()
            if isinstance(data, dict) and isinstance(data.get("error"), str):
                api_error = data["error"]
        except ValueError:
            pass
        logger.error("[API] Error %s", resp.status_code, extra={"api_error": api_error})
        raise http_error_for_status(resp.status_code, api_error)

    @staticmethod
    def _decode(resp: httpx.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise ParseError("backend returned non-JSON response") from exc
        if not isinstance(data, dict):
            raise ParseError("backend returned a non-object JSON body")
        return data

    async def health(self) -> int:
        resp = await self._send("HEAD", "/health", headers=NO_CACHE_HEADERS)
        return resp.status_code

    async def get_config(self) -> Dict[str, Any]:
        resp = await self._send("GET", "/config")
        self._raise_for_status(resp)
        return self._decode(resp)

    async def post_envelope(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON body and return the `{success: true, ...}` envelope.

        Raises a `LarkApiError` subclass for every other outcome.
        """
        resp = await self._send("POST", path, json=payload)
        self._raise_for_status(resp)
        data = self._decode(resp)
        if not data.get("success"):
            error = data.get("error") if isinstance(data.get("error"), str) else None
            raise ApiResponseError(error, user_message=error)
        return data

    async def post_audio(self, path: str, payload: Dict[str, Any]) -> AudioResponse:
        resp = await self._send("POST", path, json=payload)
        self._raise_for_status(resp)
        cache_hit = resp.headers.get("X-Cache", "").upper() == "HIT"
        return AudioResponse(audio=resp.content, cache_hit=cache_hit)


__all__ = ["AudioResponse", "LarkApiClient", "NO_CACHE_HEADERS"]
