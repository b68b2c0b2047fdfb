"""
Vector Store Failure Classification

Raw failures from ``qdrant-client`` arrive in several shapes: HTTP responses
with a status code, wrapped ``httpx`` transport errors, or plain exceptions
with a descriptive message. This module reduces them to a small set of
failure kinds and maps those onto the server's typed errors.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Iterator

import httpx

from ..core.errors import StoreAuthError, StoreConnectivityError, StoreError


class StoreFailure(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    CONNECTIVITY = "connectivity"
    AUTH = "auth"
    OTHER = "other"


_CONNECTIVITY_TYPES = (
    httpx.TimeoutException,
    httpx.NetworkError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)

_MESSAGE_MARKERS = (
    (("unauthorized", "forbidden"), StoreFailure.AUTH),
    (("already exists",), StoreFailure.ALREADY_EXISTS),
    (("not found",), StoreFailure.NOT_FOUND),
    (
        ("timed out", "timeout", "connection refused", "econnrefused", "etimedout"),
        StoreFailure.CONNECTIVITY,
    ),
)


def _iter_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current

        # ResponseHandlingException keeps the transport error on `.source`.
        source = getattr(current, "source", None)
        if isinstance(source, BaseException):
            current = source
        else:
            current = current.__cause__ or current.__context__


def classify_store_failure(exc: BaseException) -> StoreFailure:
    chain = list(_iter_chain(exc))

    for err in chain:
        status = getattr(err, "status_code", None)
        if status in (401, 403):
            return StoreFailure.AUTH
        if status == 404:
            return StoreFailure.NOT_FOUND
        if status == 409:
            return StoreFailure.ALREADY_EXISTS

    for err in chain:
        if isinstance(err, _CONNECTIVITY_TYPES):
            return StoreFailure.CONNECTIVITY

    for err in chain:
        text = str(err).lower()
        for markers, failure in _MESSAGE_MARKERS:
            if any(marker in text for marker in markers):
                return failure

    return StoreFailure.OTHER


def to_store_error(exc: BaseException, operation: str, endpoint: str) -> StoreError:
    """Map a raw store failure onto the typed error hierarchy."""
    failure = classify_store_failure(exc)

    if failure is StoreFailure.CONNECTIVITY:
        return StoreConnectivityError(
            f"Connection to vector store ({endpoint}) failed during {operation}. "
            "Please check the store status and URL."
        )

    if failure is StoreFailure.AUTH:
        return StoreAuthError(
            f"Authentication failed for vector store during {operation}. "
            "Please check QDRANT_API_KEY."
        )

    return StoreError(f"Vector store error during {operation}: {exc}")
