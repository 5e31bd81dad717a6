"""FastAPI application for the SecureData REST API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from securedata.api.middleware import api_key_middleware
from securedata.api.routes import accounts, health
from securedata.core.config import SECUREDATA_HOST, SECUREDATA_PORT
from securedata.core.errors import InternalError, SecureDataError
from securedata.core.service import get_service
from securedata.storage.db import get_supervisor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("SecureData API starting up...")
    supervisor = get_supervisor()
    supervisor.start()
    yield
    logger.info("SecureData API shutting down...")
    await get_service().logos.aclose()
    supervisor.shutdown()


async def secure_data_error_handler(
    request: Request, exc: SecureDataError
) -> JSONResponse:
    """Render a taxonomy error as a structured JSON body."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors; never leak internals to the caller."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError("Server Error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="SecureData API",
        description="REST API for SecureData - a personal credential vault",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Gateway key authentication
    app.middleware("http")(api_key_middleware)

    app.add_exception_handler(SecureDataError, secure_data_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(accounts.router, prefix="/api", tags=["Accounts"])

    return app


# Create the default app instance
app = create_app()


def run_server():
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "securedata.api.app:app",
        host=SECUREDATA_HOST,
        port=SECUREDATA_PORT,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
