from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from branch_permissions.utils import LoggingOptions, configure_logging


configure_logging(LoggingOptions(level="DEBUG", file_logging=False))

API_BASE_URL = "http://permissions.test/api"
ENV_PREFIX = "BRANCH_PERMISSIONS_"


@pytest.fixture
def api_base_url() -> str:
    return API_BASE_URL


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Remove BRANCH_PERMISSIONS_* variables inherited from the shell.

    Variables loaded from env files during the test are dropped afterwards.
    """

    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    yield monkeypatch
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            os.environ.pop(key, None)
