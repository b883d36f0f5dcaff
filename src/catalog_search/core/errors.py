"""
Error Taxonomy and Global Error Handling

This module defines the exception hierarchy shared by the indexing and
search pipeline, plus the FastAPI exception handlers that translate those
errors into HTTP responses.

Taxonomy
--------
- ConfigurationError : missing or invalid credentials. Fatal.
- ServiceError       : the embedding provider rejected or failed a request.
- StorageError       : the persistence layer failed an upsert or query.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("catalog.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class CatalogSearchError(RuntimeError):
    """Base error for the indexing and search pipeline."""


class ConfigurationError(CatalogSearchError):
    """Raised when required configuration (e.g. an API key) is missing."""


class ServiceError(CatalogSearchError):
    """
    Raised when the embedding provider fails a request.

    ``status_code`` carries the upstream HTTP status, or ``None`` when the
    request never produced a response (timeout, transport failure).
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"[{self.status_code}] {self.message}"


class StorageError(CatalogSearchError):
    """Raised when the embedding store fails an upsert or query."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

_STATUS_BY_ERROR = (
    (ConfigurationError, 500, "configuration_error", "Search is not configured"),
    (ServiceError, 502, "embedding_service_error", "Embedding service unavailable"),
    (StorageError, 503, "storage_error", "Search index unavailable"),
)


async def catalog_error_handler(
    request: Request,
    exc: CatalogSearchError,
) -> JSONResponse:
    """
    Map pipeline errors onto HTTP responses.

    The error kind is exposed to the client; the underlying message is only
    logged.
    """
    for error_type, status_code, code, detail in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            logger.error(
                "%s during request %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc,
            )
            return JSONResponse(
                status_code=status_code,
                content={"error": code, "detail": detail},
            )

    return await unhandled_exception_handler(request, exc)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Logs the full traceback internally and returns a generic 500 error with
    no internal details.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
