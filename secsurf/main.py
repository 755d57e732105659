"""
main.py

FastAPI application factory for the secsurf service (AWS Lambda compatible).

Non-developer summary (what this file does):
--------------------------------------------
- Sets up JSON logging and builds the FastAPI app.
- Adds middlewares:
    1) RequestId (adds/echoes X-Request-ID)
    2) Security headers (X-XSS-Protection, X-Frame-Options,
       X-Content-Type-Options, Strict-Transport-Security)
- Mounts /healthz and /.
- Installs uniform error handlers:
    { "error": { "code", "message", "requestId", "details?" } }
- Exposes the AWS Lambda handler (via Mangum).

HSTS policy:
    BEHIND_TLS_PROXY=false → HSTS only on requests that arrived over TLS.
    BEHIND_TLS_PROXY=true  → HSTS on every response. Use this when TLS is
                             terminated upstream (API Gateway, ALB, CDN) and
                             the app only ever sees plain http.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from mangum import Mangum

from .core.config import Settings, get_settings
from .core.errors import install_error_handlers
from .core.logging import configure_logging
from .middleware.request_id import RequestIdMiddleware
from .middleware.security_headers import SecurityHeadersMiddleware
from .routers import health as health_router

log = logging.getLogger("secsurf.main")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and configure the FastAPI application.

    Security headers are added last so they wrap everything else, including
    the error envelopes for HTTPException, AppError and validation errors.
    """
    s = settings or get_settings()

    configure_logging(s.LOG_LEVEL, service=s.APP_NAME, stage=s.APP_STAGE)

    app = FastAPI(
        title="secsurf",
        version="1.0.0",
        docs_url="/docs" if s.APP_STAGE != "prod" else None,  # hide Swagger in prod
        redoc_url=None,
    )
    app.state.settings = s
    app.state.hsts_policy = "always" if s.BEHIND_TLS_PROXY else "tls-only"

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, always_sts=s.BEHIND_TLS_PROXY)
    log.info("security headers installed", extra={"hstsPolicy": app.state.hsts_policy})

    app.include_router(health_router.router, prefix="")

    install_error_handlers(app)

    return app


# App instance for local uvicorn runs, e.g.:
# uvicorn secsurf.main:app --reload --port 8000
app = create_app()

# AWS Lambda handler via Mangum (lifespan disabled to speed cold starts)
handler = Mangum(app, lifespan="off")
