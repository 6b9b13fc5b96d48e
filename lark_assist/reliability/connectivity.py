from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from lark_assist.commands.types import PipelineState
from lark_assist.config import get_settings
from lark_assist.observability.metrics import event
from lark_assist.providers.errors import LarkApiError

if TYPE_CHECKING:
    from lark_assist.providers.client import LarkApiClient

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class ApiConfigStatus:
    checked: bool = False
    configured: bool = False
    error: Optional[str] = None


class ConnectivityMonitor:
    """Probes the backend health endpoint and owns the shared offline flag."""

    def __init__(
        self,
        client: "LarkApiClient",
        state: PipelineState,
        *,
        retry_delay_s: Optional[float] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.client = client
        self.state = state
        self.retry_delay_s = get_settings().connectivity_retry_delay_s if retry_delay_s is None else retry_delay_s
        self._sleep = sleep
        self.config_status = ApiConfigStatus()

    async def _probe(self) -> bool:
        try:
            status = await self.client.health()
        except LarkApiError as exc:
            logger.info("[NET] connectivity probe failed: %s", exc)
            return False
        except Exception as exc:  # noqa: BLE001
            logger.warning("[NET] connectivity probe error: %s", exc, exc_info=True)
            return False
        if 200 <= status < 300:
            return True
        logger.warning("[NET] health check failed with status %s", status)
        return False

    async def check_connectivity(self, retries: int = 2) -> bool:
        attempts = 1 + max(0, retries)
        for attempt in range(attempts):
            if await self._probe():
                if self.state.offline:
                    logger.info("[NET] connectivity restored")
                    event("connectivity_changed", {"offline": False, "attempts": attempt + 1})
                self.state.offline = False
                return True
            if attempt < attempts - 1:
                logger.info("[NET] retrying connectivity check (%s attempts left)", attempts - attempt - 1)
                await self._sleep(self.retry_delay_s)

        logger.info("[NET] switching to offline mode after failed retries")
        if not self.state.offline:
            event("connectivity_changed", {"offline": True, "attempts": attempts})
        self.state.offline = True
        return False

    async def check_api_configuration(self) -> ApiConfigStatus:
        try:
            data = await self.client.get_config()
        except LarkApiError as exc:
            logger.error("[CFG] error checking API configuration: %s", exc)
            self.config_status = ApiConfigStatus(checked=True, configured=False, error="Failed to check API configuration")
            return self.config_status

        config = data.get("config") if isinstance(data.get("config"), dict) else {}
        openai = config.get("openai") if isinstance(config.get("openai"), dict) else {}
        configured = bool(openai.get("configured", False))
        self.config_status = ApiConfigStatus(checked=True, configured=configured, error=None)
        logger.info("[CFG] API configuration checked", extra={"openai_configured": configured})
        return self.config_status


__all__ = ["ApiConfigStatus", "ConnectivityMonitor"]
