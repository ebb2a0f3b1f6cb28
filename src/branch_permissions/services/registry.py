from __future__ import annotations

from dataclasses import dataclass

from branch_permissions.api.client import ApiClientFactory

from .branch_import import BranchImportService
from .directory import BranchDirectoryService
from .editor import PermissionEditingSession
from .permissions import PermissionService


@dataclass(slots=True)
class ServiceRegistry:
    """Centralised container for the services shared by editing sessions."""

    client_factory: ApiClientFactory
    directory: BranchDirectoryService
    permissions: PermissionService
    branch_import: BranchImportService

    def session(self, object_type: str, object_id: int) -> PermissionEditingSession:
        return PermissionEditingSession(
            object_type,
            object_id,
            directory=self.directory,
            permissions=self.permissions,
            importer=self.branch_import,
        )

    async def close(self) -> None:
        await self.client_factory.close()


__all__ = ["ServiceRegistry"]
