"""
Error Taxonomy and Global Error Handling

This module defines the typed failures raised across the server and the
application-wide exception handlers that turn them into structured responses.

Design Goals
------------
- Every failure a caller can act on has its own class and ``kind`` string
- Configuration problems are distinguishable from transient backend failures
- Never leak internal exception details for unexpected faults
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, Tuple, Type

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("ragdocs.errors")


# ---------------------------------------------------------------------
# Exception Hierarchy
# ---------------------------------------------------------------------

class RagDocsError(Exception):
    """Base class for every typed failure raised by the server."""

    kind: ClassVar[str] = "internal_error"
    status_code: ClassVar[int] = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(RagDocsError):
    """Missing credential or unresolvable provider at startup."""

    kind = "configuration_error"


class EmbeddingBackendError(RagDocsError):
    """The embedding provider failed to answer or answered malformed data."""

    kind = "embedding_backend_error"
    status_code = 502


class EmbeddingDimensionError(RagDocsError):
    """A provider returned a vector whose length disagrees with its declared size."""

    kind = "embedding_dimension_error"


class StoreError(RagDocsError):
    """Generic vector store failure."""

    kind = "store_error"
    status_code = 502


class StoreConnectivityError(StoreError):
    """Timeout or refused connection talking to the vector store."""

    kind = "store_connectivity_error"


class StoreAuthError(StoreError):
    """The vector store rejected our credentials."""

    kind = "store_auth_error"


class InputValidationError(RagDocsError):
    """Missing or malformed tool arguments."""

    kind = "validation_error"
    status_code = 400


class PathTraversalError(InputValidationError):
    """A local path resolved outside of the workspace root."""

    kind = "path_traversal"


class LocalFileNotFoundError(InputValidationError):
    kind = "file_not_found"


class LocalFilePermissionError(InputValidationError):
    kind = "permission_denied"


class LocalFileReadError(RagDocsError):
    """Any other I/O failure while reading a local source."""

    kind = "file_read_error"


class FetchError(RagDocsError):
    """A remote source could not be fetched or rendered."""

    kind = "fetch_error"
    status_code = 502


class IngestionError(RagDocsError):
    """Catch-all for failures while turning a source into stored chunks."""

    kind = "ingestion_error"


# Failures that stop a bulk operation outright instead of skipping one unit.
FATAL_ERRORS: Tuple[Type[RagDocsError], ...] = (
    ConfigurationError,
    EmbeddingDimensionError,
    StoreConnectivityError,
    StoreAuthError,
)


def is_fatal(exc: BaseException) -> bool:
    return isinstance(exc, FATAL_ERRORS)


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def ragdocs_error_handler(
    request: Request,
    exc: RagDocsError,
) -> JSONResponse:
    """
    Convert a typed failure that escaped a route into a structured response.

    Typed failures carry messages written for callers, so the message is
    returned as-is together with the machine-readable kind.
    """
    logger.error(
        "Request %s %s failed (%s): %s",
        request.method,
        request.url.path,
        exc.kind,
        exc.message,
    )

    payload: Dict[str, Any] = {
        "error": exc.kind,
        "detail": exc.message,
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=payload,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
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
