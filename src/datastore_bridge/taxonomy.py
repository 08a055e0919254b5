"""Translate HTTP and transport failures into the library's error kinds."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from datastore_bridge.exceptions import (
    ConflictError,
    ErrorKind,
    ResponseError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

# Upstream error code meaning "no such key" (or version).
KEY_NOT_FOUND_CODE = 11

_CONFLICT_STATUSES = frozenset({409, 412})


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def map_response_error(response: httpx.Response) -> UpstreamError:
    """Build the error for a non-2xx *response*.

    Precedence: precondition failures, upstream "key not found", access
    denials, then the upstream's own ``errors``/``error`` payload.
    """
    status = response.status_code
    body = _body(response)

    if status in _CONFLICT_STATUSES:
        return ConflictError(status_code=status, detail=f"HTTP {status}")

    upstream_code: int | None = None
    upstream_message = ""
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            upstream_code = errors[0].get("code")
            upstream_message = str(errors[0].get("message", ""))
        elif "error" in body:
            upstream_message = str(body["error"])

    if upstream_code == KEY_NOT_FOUND_CODE:
        return UpstreamError(
            ErrorKind.KEY_NOT_FOUND,
            status_code=status,
            upstream_code=upstream_code,
            upstream_message=upstream_message,
        )

    if status == 403:
        return UpstreamError(
            ErrorKind.NO_API_ACCESS_ALLOWED,
            status_code=status,
            upstream_code=upstream_code,
            upstream_message=upstream_message,
            detail=upstream_message,
        )

    if upstream_code is not None:
        reason = f"Error code: {upstream_code} Reason: {upstream_message}"
    elif upstream_message:
        reason = f"Reason: {upstream_message}"
    else:
        reason = "Unknown response from API Services."

    logger.debug("Upstream rejected request with HTTP %d: %s", status, reason)
    return UpstreamError(
        ErrorKind.API_SERVICES_REJECTED,
        reason,
        status_code=status,
        upstream_code=upstream_code,
        upstream_message=upstream_message,
    )


def map_transport_error(exc: httpx.HTTPError) -> UpstreamError:
    """Build the error for a request that never produced a response."""
    if isinstance(exc, httpx.TimeoutException):
        reason = "Request timed out"
    elif isinstance(exc, httpx.ConnectError):
        reason = "Could not connect to API Services"
    else:
        reason = f"Transport error: {exc}"
    return UpstreamError(ErrorKind.API_SERVICES_REJECTED, reason, detail=type(exc).__name__)


def malformed(*, ordered: bool = False, detail: str = "") -> ResponseError:
    kind = (
        ErrorKind.MALFORMED_ORDERED_DATASTORE_RESPONSE
        if ordered
        else ErrorKind.MALFORMED_DATASTORE_RESPONSE
    )
    return ResponseError(kind, detail=detail)


def unparseable(detail: str = "") -> ResponseError:
    return ResponseError(ErrorKind.CANNOT_PARSE_RESPONSE, detail=detail)
