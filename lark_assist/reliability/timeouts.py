from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from lark_assist.providers.errors import ApiTimeoutError

T = TypeVar("T")


async def enforce_timeout(
    coro_fn: Callable[[], Awaitable[T]],
    timeout_s: float,
) -> T:
    try:
        return await asyncio.wait_for(coro_fn(), timeout=timeout_s)
    except asyncio.TimeoutError as exc:  # noqa: PERF203
        raise ApiTimeoutError(f"operation exceeded {timeout_s:g} s") from exc


__all__ = ["enforce_timeout"]
