"""HostStore FastAPI application.

Serves the dashboard API (orders, packages, provisioning, admission
tooling) and the inbound chat webhook. Commands are processed
synchronously; the service container is built once per process in the
lifespan handler and stored on ``app.state``.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from bootstrap import Container, Settings, build_container
from ordering.domain import ordering
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay from [tool.protean] in pyproject.toml
ordering.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app. Tests pass a container wired with fakes."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if container is None:
            settings = Settings.from_env()
            configure_logging(settings.log_dir)
            app.state.container = build_container(settings)
        else:
            app.state.container = container

        stop = asyncio.Event()
        cleanup = asyncio.create_task(app.state.container.admission.run_cleanup(stop))
        logger.info("HostStore API started")
        try:
            yield
        finally:
            stop.set()
            await cleanup
            logger.info("HostStore API stopped")

    app = FastAPI(
        title="HostStore API",
        description="Hosting plan orders, provisioning and chat storefront",
        lifespan=lifespan,
    )
    if container is not None:
        # Routes work even when the lifespan is not run (plain TestClient use)
        app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the Protean domain context for domain-backed routes."""
        domain = _resolve_domain(request.url.path)
        if domain is not None:
            with domain.domain_context():
                response = await call_next(request)
            return response
        # No domain match, pass through (health check, docs, etc.)
        return await call_next(request)

    register_exception_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    from admission.api.routes import admission_router
    from catalogue.api import package_router
    from ordering.api.routes import order_router
    from provisioning.api.routes import provisioning_router
    from storefront.api.routes import storefront_router

    app.include_router(order_router)
    app.include_router(package_router)
    app.include_router(provisioning_router)
    app.include_router(admission_router)
    app.include_router(storefront_router)

    # -----------------------------------------------------------------------
    # Health / root
    # -----------------------------------------------------------------------
    @app.get("/health")
    async def health(request: Request):
        services: Container = request.app.state.container
        return JSONResponse(
            content={
                "status": "ok",
                "domain": ordering.name,
                "auto_provisioning": services.orchestrator.is_auto_provisioning_enabled(),
                "admission": {"tracked_senders": services.admission.stats().total_senders},
            }
        )

    return app


app = create_app()
