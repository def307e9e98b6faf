"""Exception handlers mapping core failures onto plain-text HTTP responses.

Bodies are fixed strings: a rejected token never says why, and storage or
unexpected failures never leak internal detail.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse

from ..errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)

REJECTION_MESSAGE = "bad token"
UNAVAILABLE_MESSAGE = "service unavailable"
INTERNAL_ERROR_MESSAGE = "internal error"


def register_error_handlers(app: FastAPI) -> None:
    """Register the handlers for every per-request failure on ``app``."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> PlainTextResponse:
        logger.info("token rejected")
        return PlainTextResponse(REJECTION_MESSAGE, status_code=status.HTTP_401_UNAUTHORIZED)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> PlainTextResponse:
        logger.error("storage failure: %s", exc, exc_info=exc)
        return PlainTextResponse(UNAVAILABLE_MESSAGE, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        logger.error("unhandled exception: %s", exc, exc_info=exc)
        return PlainTextResponse(
            INTERNAL_ERROR_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
