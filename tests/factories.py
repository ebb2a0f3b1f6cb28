from __future__ import annotations

from typing import Iterable

from branch_permissions.api.client import ApiClientConfig, ApiClientFactory
from branch_permissions.data import Branch


def make_branch(branch_id: int, label: str | None = None) -> Branch:
    """Create a Branch using the directory wire aliases."""

    return Branch.from_api({"id": branch_id, "name": label or f"Branch {branch_id}"})


def make_directory(count: int) -> list[Branch]:
    return [make_branch(index) for index in range(1, count + 1)]


def make_sample_directory() -> list[Branch]:
    return [
        make_branch(1, "Centro Norte"),
        make_branch(2, "Sur"),
        make_branch(3, "Sucursal Centro Mayor"),
    ]


def branch_payloads(branches: Iterable[Branch]) -> list[dict[str, object]]:
    return [branch.to_api() for branch in branches]


def make_client_factory(base_url: str) -> ApiClientFactory:
    return ApiClientFactory(ApiClientConfig(base_url=base_url, enable_telemetry=False))
