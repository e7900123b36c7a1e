"""FastAPI application exposing attribution copy and rewrite propagation."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import AiBlameError
from ..logging_utils import configure_logging
from ..serialize import OutputSerializer
from . import __version__
from .routes import router as api_router

configure_logging()

logger = logging.getLogger(__name__)

serializer = OutputSerializer()

app = FastAPI(
    title="aiblame API",
    description="Attribution notes for commits, kept in sync across history rewrites",
    version=__version__,
)

app.include_router(api_router)


@app.exception_handler(AiBlameError)
async def aiblame_error_handler(request: Request, exc: AiBlameError):
    """Engine errors that escape a route become a 400 error envelope."""
    logger.warning(
        "Unhandled aiblame error",
        extra={"code": exc.code, "path": request.url.path},
    )
    return JSONResponse(
        status_code=400,
        content=serializer.create_error_envelope(exc.code, exc.message, exc.details),
    )


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unexpected error serving request",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content=serializer.create_error_envelope(
            "INTERNAL_ERROR",
            f"Internal server error: {exc}",
            {"exception_type": type(exc).__name__, "path": request.url.path},
        ),
    )
