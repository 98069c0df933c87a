"""
API Gateway -- FastAPI application factory.

Creates the FastAPI app with all routes, middleware, and shared state.
This is the entrypoint for uvicorn:

    uvicorn maire.api.gateway:create_app --factory --host 0.0.0.0 --port 8000

Or via the CLI:

    maire serve --port 8000

Security:
  - CORS restricted to configured origins (default: localhost only)
  - Per-request api_keys are passed through, never stored on app.state
  - All external input validated at boundary

Route logic lives in routes/.
"""

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import OrchestratorConfig, cors_origins, provider_keys_from_env
from ..llm.invoker import ModelInvoker
from ..llm.registry import ModelRegistry
from ..orchestration.orchestrator import Orchestrator
from .routes import health, models, run

logger = logging.getLogger(__name__)


def create_app(
    orchestrator: Orchestrator | None = None,
    registry: ModelRegistry | None = None,
    provider_keys: dict[str, str] | None = None,
) -> FastAPI:
    """
    Application factory -- creates and configures the FastAPI app.

    Args:
        orchestrator: Pre-built orchestrator (built from environment if None).
        registry: Model registry (default catalogue if None).
        provider_keys: Server-side provider keys (read from environment if None).
    """
    application = FastAPI(
        title="MAIRE API",
        description="Multi-model topology orchestration with a provenance ledger",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    if provider_keys is None:
        provider_keys = provider_keys_from_env()
    if orchestrator is None:
        config = OrchestratorConfig.from_env()
        orchestrator = Orchestrator(
            invoker=ModelInvoker(
                registry=registry,
                timeout=config.invoke_timeout,
                max_prompt_length=config.max_prompt_length,
            ),
            config=config,
            provider_keys=provider_keys,
        )
    if registry is None:
        registry = orchestrator.invoker.registry

    application.state.orchestrator = orchestrator
    application.state.registry = registry
    application.state.provider_keys = provider_keys
    application.state.start_time = time.time()
    application.state.metrics = {"runs_completed": 0, "runs_failed": 0}

    application.include_router(health.router, tags=["Health"])
    application.include_router(models.router, tags=["Models"])
    application.include_router(run.router, tags=["Run"])

    logger.info(
        f"[Gateway] API initialized ({registry.count} models, "
        f"providers: {', '.join(sorted(provider_keys)) or 'none -- stub only'})"
    )
    return application
