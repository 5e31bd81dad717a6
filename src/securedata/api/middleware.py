"""Gateway key check.

The identity layer in front of the vault presents a shared key in X-API-Key.
Without a configured key every request is refused, unless
SECUREDATA_ALLOW_NO_AUTH is set for local development.
"""

import logging
import secrets
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from securedata.core import config
from securedata.core.errors import Unauthorized

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/api/health", "/api/health/live", "/docs", "/openapi.json"})


def _reject(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error": Unauthorized.kind},
    )


async def api_key_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    if request.url.path in PUBLIC_PATHS:
        return await call_next(request)

    expected = config.SECUREDATA_API_KEY
    if not expected:
        if config.SECUREDATA_ALLOW_NO_AUTH:
            return await call_next(request)
        logger.error("SECUREDATA_API_KEY not set, refusing request to %s", request.url.path)
        return _reject(503, "API key not configured")

    presented = request.headers.get("X-API-Key")
    if not presented:
        return _reject(401, "Missing X-API-Key header")
    if not secrets.compare_digest(presented.encode(), expected.encode()):
        return _reject(401, "Invalid API key")

    return await call_next(request)
