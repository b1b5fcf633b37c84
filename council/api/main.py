"""
Council Main Application
========================

Startup order (lifespan):
  1. Settings from the environment (and ``.env``)
  2. Logging
  3. Shared httpx client, provider registry, cascade executor
  4. Pipeline orchestrator

Anything passed to ``create_app`` is used as-is instead of being built,
which is how tests inject fakes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from .. import __version__
from ..agents.orchestrator import PipelineOrchestrator
from ..core.config import Settings
from ..core.exceptions import CouncilException
from ..execution.cascade import CascadeExecutor
from ..infra.telemetry import get_logger, setup_logging
from .exception_handlers import council_exception_handler, generic_exception_handler
from .routes import router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings | None = app.state.settings
    if settings is None:
        settings = Settings.from_env()
        app.state.settings = settings
    setup_logging(level=settings.LOG_LEVEL, json_output=settings.ENVIRONMENT != "development")

    client: httpx.AsyncClient | None = None
    if app.state.executor is None:
        client = httpx.AsyncClient(timeout=settings.ATTEMPT_TIMEOUT_S)
        app.state.executor = CascadeExecutor.from_settings(settings, client=client)
    if app.state.orchestrator is None:
        app.state.orchestrator = PipelineOrchestrator(app.state.executor)

    providers = app.state.executor.router.providers
    if not providers:
        logger.warning("no_providers_configured")
    logger.info(
        "council_started",
        environment=settings.ENVIRONMENT,
        providers=",".join(p.name for p in providers) or "-",
    )

    yield

    if client is not None:
        await client.aclose()
    logger.info("council_stopped")


def create_app(
    settings: Settings | None = None,
    *,
    executor: CascadeExecutor | None = None,
    orchestrator: PipelineOrchestrator | None = None,
) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME if settings else "Council",
        description="Tiered LLM provider cascade and multi-role decision pipeline",
        version=__version__,
        lifespan=lifespan,
    )
    if orchestrator is None and executor is not None:
        orchestrator = PipelineOrchestrator(executor)
    app.state.settings = settings
    app.state.executor = executor
    app.state.orchestrator = orchestrator

    app.add_exception_handler(CouncilException, council_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("council.api.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
