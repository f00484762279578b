"""SlowAPI rate limiting setup.

Counters live in ``RATE_LIMIT_STORAGE_URI``. The default ``memory://`` store is
process-local, so limits only hold for a single instance; point it at Redis
(``redis://...``) when running several.
"""

from __future__ import annotations

import logging

from slowapi import Limiter, extension as slowapi_extension
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from agrihub.core.config import settings

logger = logging.getLogger(__name__)


def _build_limiter() -> Limiter:
    try:
        return Limiter(
            key_func=get_remote_address,
            default_limits=[settings.RATE_LIMIT_DEFAULT],
            storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        )
    except Exception as exc:  # pragma: no cover - fallback when storage unavailable
        logger.warning("Rate limit storage unavailable, using memory: %s", exc)
        return Limiter(
            key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_DEFAULT]
        )


limiter = _build_limiter()


def _rate_limit_handler(request: Request, exc: Exception) -> JSONResponse:
    detail = getattr(exc, "detail", str(exc))
    response = JSONResponse(
        {"success": False, "error": f"Rate limit exceeded: {detail}"}, status_code=429
    )
    view_limit = getattr(request.state, "view_rate_limit", None)
    if view_limit is not None:
        response = limiter._inject_headers(response, view_limit)
    return response


slowapi_extension._rate_limit_exceeded_handler = _rate_limit_handler


class RateLimitMiddleware(SlowAPIMiddleware):
    exempt_paths = {
        "/metrics",
        "/health",
        "/api/v1/health/liveness",
        "/api/v1/health/readiness",
    }

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        if request.url.path in self.exempt_paths:
            return await call_next(request)
        return await super().dispatch(request, call_next)
