from __future__ import annotations

from branch_permissions.api.client import ApiClientConfig, ApiClientFactory
from branch_permissions.config import Settings
from branch_permissions.services import (
    BranchDirectoryService,
    BranchImportService,
    PermissionService,
    ServiceRegistry,
)
from branch_permissions.utils import get_logger


logger = get_logger(__name__)


def build_services(
    settings: Settings,
    *,
    client_factory: ApiClientFactory | None = None,
) -> ServiceRegistry:
    """Wire the directory, permission and import services around one HTTP client."""

    factory = client_factory or ApiClientFactory(ApiClientConfig.from_settings(settings))
    registry = ServiceRegistry(
        client_factory=factory,
        directory=BranchDirectoryService(factory),
        permissions=PermissionService(factory, batch_size=settings.batch_size),
        branch_import=BranchImportService(),
    )
    logger.debug(
        "Service registry initialised",
        base_url=factory.base_url,
        batch_size=settings.batch_size,
    )
    return registry


__all__ = ["build_services"]
