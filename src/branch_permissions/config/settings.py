from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, TypeVar

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "BranchPermissions"
ENV_PREFIX = "BRANCH_PERMISSIONS_"
ENV_FILE_NAME = "settings.env"

DEFAULT_API_BASE_URL = "http://localhost:3000/api"
DEFAULT_BATCH_SIZE = 100
DEFAULT_REQUEST_TIMEOUT = 30.0
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

NumberT = TypeVar("NumberT", int, float)


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    return _ensure(Path(user_config_dir(APP_NAME, appauthor=False)))


def cache_dir() -> Path:
    return _ensure(Path(user_cache_dir(APP_NAME, appauthor=False)))


def log_dir() -> Path:
    return _ensure(cache_dir() / "logs")


@dataclass(slots=True)
class Settings:
    """Connection and tuning values for the permission and branch APIs.

    Transport details (base URL, token) are owned here so the services only
    ever see relative endpoint paths.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: str | None = None
    batch_size: int = DEFAULT_BATCH_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = "INFO"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.api_token)

    def normalized_base_url(self) -> str:
        return self.api_base_url.strip().rstrip("/")


class SettingsManager:
    """Read settings from ``BRANCH_PERMISSIONS_*`` variables and a dotenv file.

    Real environment variables win over the file. Invalid numbers fall back
    to their defaults with a warning instead of failing start-up.
    """

    def __init__(self, env_file: Path | None = None) -> None:
        self.env_file = env_file or (config_dir() / ENV_FILE_NAME)

    def load(self) -> Settings:
        load_dotenv(self.env_file, override=False)
        level = (_env("LOG_LEVEL") or "INFO").upper()
        return Settings(
            api_base_url=_env("API_BASE_URL") or DEFAULT_API_BASE_URL,
            api_token=_env("API_TOKEN"),
            batch_size=_positive("BATCH_SIZE", int, DEFAULT_BATCH_SIZE),
            request_timeout=_positive("REQUEST_TIMEOUT", float, DEFAULT_REQUEST_TIMEOUT),
            log_level=level if level in LOG_LEVELS else "INFO",
        )

    def save(self, settings: Settings) -> None:
        """Write every field to the env file, replacing its previous contents."""

        _ensure(self.env_file.parent)
        lines = []
        for item in fields(settings):
            value = getattr(settings, item.name)
            lines.append(f"{ENV_PREFIX}{item.name.upper()}={'' if value is None else value}")
        self.env_file.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _env(name: str) -> str | None:
    return os.environ.get(f"{ENV_PREFIX}{name}") or None


def _positive(name: str, parse: Callable[[str], NumberT], default: NumberT) -> NumberT:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = parse(raw)
    except ValueError:
        value = None
    if value is None or value <= 0:
        _warn_invalid(name, raw, default)
        return default
    return value


def _warn_invalid(name: str, raw: str, default: object) -> None:
    # Imported lazily: logging resolves its file sink through this module.
    from branch_permissions.utils.logging import get_logger

    get_logger(__name__).warning(
        "Ignoring invalid setting value",
        setting=f"{ENV_PREFIX}{name}",
        value=raw,
        fallback=default,
    )


__all__ = [
    "DEFAULT_API_BASE_URL",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_REQUEST_TIMEOUT",
    "ENV_PREFIX",
    "Settings",
    "SettingsManager",
    "cache_dir",
    "config_dir",
    "log_dir",
]
