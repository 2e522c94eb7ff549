"""ASGI app entrypoint for the conference demo service.

This module exposes the FastAPI `app` object, wires the Telnyx client and
the event correlator into application state, and includes a minimal
healthcheck endpoint used by orchestration tooling.

Run locally with: $ uvicorn conference_demo.main:app --port 9090
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .api import commands as commands_router
from .api import webhooks as webhooks_router
from .config import Settings, settings as default_settings
from .errors import AuthenticationError, CallControlError
from .handlers.correlator import EventCorrelator
from .handlers.dedupe import SeenEvents
from .integrations import signature
from .integrations.telnyx import CallControlClient

logger = logging.getLogger(__name__)


# Pydantic model for the /health response to ensure a stable schema
class HealthResponse(BaseModel):
    status: str = "ok"


def create_app(settings: Optional[Settings] = None, client: Optional[CallControlClient] = None) -> FastAPI:
    """Build the application.

    `client` replaces the Telnyx client built from settings; the caller
    then owns closing it.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(
            level=settings.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        if settings.telnyx_public_key:
            # ConfigurationError here aborts startup
            app.state.verify_key = signature.load_verify_key(settings.telnyx_public_key)
        else:
            logger.warning("TELNYX_PUBLIC_KEY is not set; every webhook will be rejected")
            app.state.verify_key = None

        owns_client = client is None
        app.state.client = client or CallControlClient(
            settings.telnyx_api_key,
            base_url=settings.telnyx_base_url,
            timeout=settings.telnyx_timeout,
        )
        app.state.correlator = EventCorrelator(
            app.state.client,
            voice=settings.voice,
            language=settings.language,
            conference_name_prefix=settings.conference_name_prefix,
            seen=SeenEvents(ttl=settings.event_retention_seconds, max_size=settings.event_retention_max),
        )
        try:
            yield
        finally:
            if owns_client:
                await app.state.client.aclose()

    app = FastAPI(title="Conference Demo", lifespan=lifespan)
    app.state.settings = settings

    app.include_router(webhooks_router.router, tags=["webhooks"])
    app.include_router(commands_router.router, tags=["commands"])

    @app.exception_handler(AuthenticationError)
    async def authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
        logger.warning("Rejected webhook from %s: %s", request.client.host if request.client else "unknown", exc)
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(CallControlError)
    async def call_control_error(request: Request, exc: CallControlError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"detail": str(exc), "status_code": exc.status_code, "body": exc.body},
        )

    # Minimal health endpoint used for readiness/liveness checks
    @app.get("/health", response_model=HealthResponse, status_code=200)
    async def health() -> HealthResponse:
        """Return a simple health status in a predictable JSON schema."""
        return HealthResponse()

    return app


# Create and expose the FastAPI application object (ASGI app named `app`)
app = create_app()


def run() -> None:
    """Console entrypoint: serve `app` on the configured port."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
