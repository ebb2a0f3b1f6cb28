from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from httpx._client import USE_CLIENT_DEFAULT, UseClientDefault

from branch_permissions.api.errors import ApiError, ApiErrorCategory
from branch_permissions.api.requests import ApiRequest
from branch_permissions.config import DEFAULT_API_BASE_URL, DEFAULT_REQUEST_TIMEOUT
from branch_permissions.config.settings import Settings
from branch_permissions.utils import get_logger


logger = get_logger(__name__)

_STATUS_CATEGORIES: dict[int, ApiErrorCategory] = {
    400: ApiErrorCategory.VALIDATION,
    401: ApiErrorCategory.AUTHENTICATION,
    403: ApiErrorCategory.PERMISSION,
    404: ApiErrorCategory.NOT_FOUND,
    409: ApiErrorCategory.CONFLICT,
    422: ApiErrorCategory.VALIDATION,
}
_MESSAGE_KEYS = ("message", "error", "detail")


@dataclass(slots=True)
class ApiTelemetryEvent:
    method: str
    url: str
    status_code: int | None
    duration_ms: float
    category: ApiErrorCategory | None
    success: bool


TelemetryCallback = Callable[[ApiTelemetryEvent], None]


class TelemetryAsyncClient(httpx.AsyncClient):
    """``httpx.AsyncClient`` that raises ``ApiError`` for failed calls and times each one.

    Every request produces exactly one telemetry event, whatever the outcome.
    """

    def __init__(
        self, *args: Any, telemetry_callback: TelemetryCallback | None = None, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self._on_telemetry = telemetry_callback

    async def send(
        self,
        request: httpx.Request,
        *,
        stream: bool = False,
        auth: Any = USE_CLIENT_DEFAULT,
        follow_redirects: bool | UseClientDefault = USE_CLIENT_DEFAULT,
    ) -> httpx.Response:
        started = time.perf_counter()
        status_code: int | None = None
        failure: ApiError | None = None
        try:
            response = await super().send(
                request, stream=stream, auth=auth, follow_redirects=follow_redirects
            )
            status_code = response.status_code
            if response.is_error:
                if stream:
                    await response.aread()
                failure = error_from_response(response)
                raise failure
            return response
        except httpx.TransportError as exc:
            failure = _network_error(request, exc)
            raise failure from exc
        finally:
            self._emit(
                ApiTelemetryEvent(
                    method=request.method,
                    url=str(request.url),
                    status_code=status_code,
                    duration_ms=(time.perf_counter() - started) * 1000,
                    category=failure.category if failure else None,
                    success=failure is None,
                )
            )

    def _emit(self, event: ApiTelemetryEvent) -> None:
        if self._on_telemetry is None:
            return
        try:
            self._on_telemetry(event)
        except Exception:  # pragma: no cover - telemetry must not break requests
            logger.warning("Telemetry callback raised an exception", exc_info=True)


def _network_error(request: httpx.Request, exc: httpx.TransportError) -> ApiError:
    if isinstance(exc, httpx.TimeoutException):
        message = "Timed out talking to the permission service"
    else:
        message = f"Could not reach the permission service: {exc}"
    return ApiError(
        message=message,
        category=ApiErrorCategory.NETWORK,
        request_method=request.method,
        request_url=str(request.url),
        inner_error=exc,
    )


def error_from_response(response: httpx.Response) -> ApiError:
    """Build an ``ApiError`` from a 4xx/5xx response, keeping the server's message."""

    status = response.status_code
    if status in _STATUS_CATEGORIES:
        category = _STATUS_CATEGORIES[status]
    elif status >= 500:
        category = ApiErrorCategory.SERVER
    else:
        category = ApiErrorCategory.UNKNOWN

    return ApiError(
        message=_server_message(response) or f"Request failed with status {status}",
        category=category,
        status_code=status,
        request_method=response.request.method,
        request_url=str(response.request.url),
    )


def _server_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        for key in _MESSAGE_KEYS:
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return response.text or None


@dataclass(slots=True)
class ApiClientConfig:
    base_url: str = DEFAULT_API_BASE_URL
    token: str | None = None
    timeout: float = DEFAULT_REQUEST_TIMEOUT
    user_agent: str = "branch-permissions"
    enable_telemetry: bool = True
    telemetry_callback: TelemetryCallback | None = None
    transport: httpx.AsyncBaseTransport | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiClientConfig":
        return cls(
            base_url=settings.normalized_base_url(),
            token=settings.api_token,
            timeout=settings.request_timeout,
        )


class ApiClientFactory:
    """Lazily create and own the one HTTP client every service shares."""

    def __init__(self, config: ApiClientConfig) -> None:
        self._config = config
        self._client: TelemetryAsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> httpx.Response:
        return await self._http().request(
            method, self._url_for(path), params=params, json=json_body
        )

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        """Like ``request`` but decode the body; an empty body decodes to ``None``."""

        response = await self.request(method, path, params=params, json_body=json_body)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                message="Response body is not valid JSON",
                category=ApiErrorCategory.VALIDATION,
                status_code=response.status_code,
                request_method=response.request.method,
                request_url=str(response.request.url),
                inner_error=exc,
            ) from exc

    async def send(self, request: ApiRequest) -> Any:
        return await self.request_json(
            request.method, request.url, params=request.params, json_body=request.body
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------- Internals

    def _http(self) -> TelemetryAsyncClient:
        if self._client is not None:
            return self._client

        headers = {"Accept": "application/json", "User-Agent": self._config.user_agent}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"

        callback: TelemetryCallback | None = None
        if self._config.enable_telemetry:
            callback = self._config.telemetry_callback or _log_telemetry

        options: dict[str, Any] = {}
        if self._config.transport is not None:
            options["transport"] = self._config.transport
        self._client = TelemetryAsyncClient(
            headers=headers,
            timeout=httpx.Timeout(self._config.timeout, connect=10.0),
            telemetry_callback=callback,
            **options,
        )
        return self._client

    def _url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"


def _log_telemetry(event: ApiTelemetryEvent) -> None:
    logger.debug(
        "API request",
        method=event.method,
        url=event.url,
        status_code=event.status_code,
        duration_ms=round(event.duration_ms, 2),
        success=event.success,
        category=event.category.value if event.category else None,
    )


__all__ = [
    "ApiClientConfig",
    "ApiClientFactory",
    "ApiTelemetryEvent",
    "TelemetryAsyncClient",
    "error_from_response",
]
