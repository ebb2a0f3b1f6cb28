from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ApiErrorCategory(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    SERVER = "server"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class ApiError(Exception):
    message: str
    category: ApiErrorCategory = ApiErrorCategory.UNKNOWN
    status_code: int | None = None
    request_method: str | None = None
    request_url: str | None = None
    inner_error: Exception | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @property
    def recovery_suggestion(self) -> str | None:
        if self.category is ApiErrorCategory.AUTHENTICATION:
            return "Check the configured API token and sign in again."
        if self.category is ApiErrorCategory.PERMISSION:
            return "The API token is not allowed to manage branch permissions."
        if self.category is ApiErrorCategory.NETWORK:
            return "Check your network connection and the API base URL, then retry."
        if self.category is ApiErrorCategory.CONFLICT:
            return "The record already exists. Reload the object and save again."
        if self.category is ApiErrorCategory.NOT_FOUND:
            return "The record no longer exists. Reload the object and save again."
        if self.category is ApiErrorCategory.SERVER:
            return "The permission service failed. Retry shortly."
        if self.category is ApiErrorCategory.VALIDATION:
            return "The API rejected the request payload."
        return None

    @property
    def is_retriable(self) -> bool:
        if self.category in {ApiErrorCategory.NETWORK, ApiErrorCategory.SERVER}:
            return True
        if self.status_code and 500 <= self.status_code <= 599:
            return True
        return False


class FetchError(ApiError):
    """Raised when the branch directory or a persisted permission set cannot be read."""

    def __init__(self, message: str, *, cause: ApiError | None = None) -> None:
        super().__init__(
            message=message,
            category=cause.category if cause else ApiErrorCategory.UNKNOWN,
            status_code=cause.status_code if cause else None,
            request_method=cause.request_method if cause else None,
            request_url=cause.request_url if cause else None,
            inner_error=cause,
        )


__all__ = ["ApiError", "ApiErrorCategory", "FetchError"]
