"""
HTTP App
========
FastAPI application exposing the generator over HTTP.

Routes:
    GET  /health        — liveness check
    POST /api/generate  — see autotest.api.generate
"""
import time
import logging

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from autotest.api.generate import router as generate_router

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request; 5xx responses are logged at WARNING."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s failed after %.1fms", route, _elapsed_ms(started))
            raise

        elapsed = _elapsed_ms(started)
        response.headers["X-Process-Time-Ms"] = f"{elapsed:.1f}"
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        client_host = request.client.host if request.client else "-"
        logger.log(level, "%s -> %d in %.1fms (client %s)", route, response.status_code, elapsed, client_host)
        return response


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def create_app() -> FastAPI:
    app = FastAPI(title="AutoTest API")
    app.add_middleware(LoggingMiddleware)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    app.include_router(generate_router)
    return app
