"""FastAPI application factory.

create_app() returns a configured FastAPI instance. The lifespan owns
the long-lived clients: the identity provider's HTTP client is opened
at startup and closed, together with the database engine, at shutdown.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskhub import __version__
from taskhub.api import api_router, callback_router
from taskhub.auth.provider import GoTrueIdentityProvider
from taskhub.config import settings
from taskhub.logging import configure_logging
from taskhub.middleware.request_id import RequestIdMiddleware
from taskhub.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "taskhub.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    provider = GoTrueIdentityProvider(
        settings.auth_url,
        api_key=settings.auth_api_key,
        timeout=settings.auth_timeout_seconds,
    )
    app.state.identity_provider = provider
    logger.info("taskhub.identity_provider_ready", url=settings.auth_url)

    yield

    logger.info("taskhub.shutdown")
    await provider.aclose()

    from taskhub.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings.log_level, json_logs=settings.log_json)

    app = FastAPI(
        title="TaskHub",
        description="Project and task management backend",
        version=__version__,
        lifespan=lifespan,
    )

    # Starlette runs middleware in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)
    app.include_router(callback_router, tags=["auth"])

    return app


# Default app instance (used by uvicorn: taskhub.main:app)
app = create_app()
