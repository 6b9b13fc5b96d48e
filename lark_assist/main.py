from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.config import dictConfig
from typing import Any, AsyncIterator, Callable, Dict, Optional

from fastapi import Depends, FastAPI, Request
from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator

from lark_assist import __version__
from lark_assist.commands.types import ExecutionResult
from lark_assist.config import get_settings, settings_public_summary
from lark_assist.pipeline import CommandPipeline
from lark_assist.providers.client import LarkApiClient

MAX_TRANSCRIPT_CHARS = 2000

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        }
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}

logger = logging.getLogger(__name__)


class CommandBody(BaseModel):
    transcript: StrictStr = Field(..., min_length=1, max_length=MAX_TRANSCRIPT_CHARS)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _strip(cls, values: Any) -> Any:
        if isinstance(values, dict) and isinstance(values.get("transcript"), str):
            values = {**values, "transcript": values["transcript"].strip()}
        return values


def _default_pipeline() -> CommandPipeline:
    return CommandPipeline(LarkApiClient())


def create_app(pipeline_factory: Optional[Callable[[], CommandPipeline]] = None) -> FastAPI:
    factory = pipeline_factory or _default_pipeline

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        pipeline = factory()
        app.state.pipeline = pipeline
        logger.info("[CFG] loaded", extra={"settings": settings_public_summary()})
        await pipeline.check_api_configuration()
        try:
            yield
        finally:
            await pipeline.client.aclose()

    app = FastAPI(title="LARK Command Pipeline", version=__version__, lifespan=lifespan)

    def get_pipeline(request: Request) -> CommandPipeline:
        return request.app.state.pipeline

    @app.post("/api/commands", response_model=ExecutionResult, response_model_exclude_none=True)
    async def process_command(body: CommandBody, pipeline: CommandPipeline = Depends(get_pipeline)) -> ExecutionResult:
        return await pipeline.process(body.transcript)

    @app.get("/api/health")
    async def health(pipeline: CommandPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
        return {
            "status": "ok",
            "offline": pipeline.state.offline,
            "in_progress": pipeline.state.in_progress,
            "version": __version__,
        }

    @app.get("/api/analytics")
    async def analytics(pipeline: CommandPipeline = Depends(get_pipeline)) -> Dict[str, Any]:
        return {
            "commands": pipeline.session.analytics.summary(),
            "cache": pipeline.session.response_cache.stats(),
        }

    return app


dictConfig(LOGGING_CONFIG)
logging.getLogger().setLevel(get_settings().log_level.upper())

app = create_app()

__all__ = ["app", "create_app", "CommandBody"]
