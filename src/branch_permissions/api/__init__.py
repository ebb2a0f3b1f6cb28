"""HTTP client utilities for the permission and branch directory APIs."""

from .client import ApiClientConfig, ApiClientFactory, ApiTelemetryEvent
from .errors import ApiError, ApiErrorCategory, FetchError
from .requests import ApiRequest

__all__ = [
    "ApiClientConfig",
    "ApiClientFactory",
    "ApiTelemetryEvent",
    "ApiError",
    "ApiErrorCategory",
    "ApiRequest",
    "FetchError",
]
