from __future__ import annotations

import socket
from dataclasses import dataclass
from enum import Enum

import httpx

from branch_permissions.api.errors import ApiError, ApiErrorCategory, FetchError


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ErrorDescriptor:
    headline: str
    detail: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    transient: bool = False
    suggestion: str | None = None


_API_HEADLINES: dict[ApiErrorCategory, str] = {
    ApiErrorCategory.NETWORK: "Network issue contacting the permission service.",
    ApiErrorCategory.AUTHENTICATION: "The permission service rejected the credentials.",
    ApiErrorCategory.PERMISSION: "The configured account cannot manage branch permissions.",
    ApiErrorCategory.CONFLICT: "The requested change conflicts with existing data.",
    ApiErrorCategory.NOT_FOUND: "The requested record was not found.",
    ApiErrorCategory.VALIDATION: "The permission service rejected the request payload.",
    ApiErrorCategory.SERVER: "The permission service returned a server error.",
}

# (exception type, headline, suggestion); first match wins.
_TRANSIENT_ROOTS: tuple[tuple[type[BaseException], str, str], ...] = (
    (
        httpx.TimeoutException,
        "Timed out contacting the permission service.",
        "Check your network connection and retry shortly.",
    ),
    (
        TimeoutError,
        "Operation timed out before the service responded.",
        "Retry the request after verifying connectivity.",
    ),
    (
        socket.gaierror,
        "DNS lookup failed while contacting the service.",
        "Verify the API base URL and DNS configuration.",
    ),
)


def describe_exception(error: Exception) -> ErrorDescriptor:
    """Turn any exception raised by a command into user-facing text."""

    api_error = _find_in_chain(error, ApiError)
    if api_error is not None:
        return _describe_api_error(api_error)

    root = _root_cause(error)
    for kind, headline, suggestion in _TRANSIENT_ROOTS:
        if isinstance(root, kind):
            return ErrorDescriptor(
                headline=headline,
                detail=f"{type(root).__name__}: {root}",
                severity=ErrorSeverity.WARNING,
                transient=True,
                suggestion=suggestion,
            )

    return ErrorDescriptor(
        headline="Operation failed.",
        detail=f"{type(error).__name__}: {error}",
    )


def _describe_api_error(error: ApiError) -> ErrorDescriptor:
    if isinstance(error, FetchError):
        headline = "Could not load branch data; nothing was changed."
    else:
        headline = _API_HEADLINES.get(error.category, "Permission service request failed.")
    detail = f"HTTP {error.status_code}: {error}" if error.status_code else str(error)
    return ErrorDescriptor(
        headline=headline,
        detail=detail,
        severity=ErrorSeverity.WARNING if error.is_retriable else ErrorSeverity.ERROR,
        transient=error.is_retriable,
        suggestion=error.recovery_suggestion,
    )


def _chain(error: BaseException):
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _find_in_chain(error: BaseException, kind: type[ApiError]) -> ApiError | None:
    return next((item for item in _chain(error) if isinstance(item, kind)), None)


def _root_cause(error: BaseException) -> BaseException:
    root = error
    for root in _chain(error):
        pass
    return root


__all__ = [
    "ErrorDescriptor",
    "ErrorSeverity",
    "describe_exception",
]
