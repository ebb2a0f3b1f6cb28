from __future__ import annotations

from pathlib import Path

from branch_permissions.data import Branch
from branch_permissions.services.branch_import import BranchImportService, ImportResult
from branch_permissions.services.directory import BranchDirectoryService
from branch_permissions.services.permissions import PermissionService
from branch_permissions.services.reconcile import ReconcileResult
from branch_permissions.services.selection import BranchSelection, filter_branches
from branch_permissions.utils import ProgressState, get_logger


logger = get_logger(__name__)


class PermissionEditingSession:
    """State for editing the branch permissions of one content object.

    Each session owns its own selection and progress state; nothing is
    shared between sessions.
    """

    def __init__(
        self,
        object_type: str,
        object_id: int,
        *,
        directory: BranchDirectoryService,
        permissions: PermissionService,
        importer: BranchImportService | None = None,
        progress: ProgressState | None = None,
    ) -> None:
        self.object_type = object_type
        self.object_id = object_id
        self._directory = directory
        self._permissions = permissions
        self._importer = importer or BranchImportService()
        self.selection = BranchSelection()
        self.progress = progress or ProgressState()
        self.pending_import: ImportResult | None = None
        self.last_result: ReconcileResult | None = None
        self._is_open = False

    @property
    def directory(self) -> list[Branch]:
        return self._directory.branches

    @property
    def is_open(self) -> bool:
        """True between ``open()`` and the next fully successful ``save()``."""

        return self._is_open

    async def open(self) -> BranchSelection:
        """Load the directory and hydrate the selection from persisted permissions."""

        branches = await self._directory.load()
        existing = await self._permissions.list_branch_ids(self.object_type, self.object_id)
        self.selection.hydrate(existing, branches)
        self._is_open = True
        logger.info(
            "Permission editing session opened",
            object_type=self.object_type,
            object_id=self.object_id,
            persisted=len(existing),
            selected=len(self.selection),
        )
        return self.selection

    def filtered(self, query: str | None) -> list[Branch]:
        return filter_branches(self._directory.branches, query)

    def import_text(self, raw_text: str) -> ImportResult:
        self.pending_import = self._importer.parse(raw_text, self._directory.branches)
        return self.pending_import

    def import_file(self, path: Path) -> ImportResult:
        self.pending_import = self._importer.parse_file(path, self._directory.branches)
        return self.pending_import

    def apply_import(self) -> list[Branch]:
        if self.pending_import is None:
            return []
        added = self._importer.apply(self.pending_import, self.selection)
        self.pending_import = None
        return added

    def discard_import(self) -> None:
        self.pending_import = None

    async def save(self, *, batch_size: int | None = None) -> ReconcileResult:
        """Reconcile persisted permissions with the current selection.

        The selection is discarded only when every call succeeded; otherwise
        it is kept so the caller can save again. A discarded (or never
        hydrated) selection is not a valid desired state, so saving requires
        an open session.
        """

        if not self._is_open:
            raise RuntimeError("session is closed; call open() again")
        self.progress.reset()
        result = await self._permissions.reconcile(
            self.object_type,
            self.object_id,
            self.selection.branches(),
            progress=self.progress,
            batch_size=batch_size,
            directory_ids=self._directory.ids() if self._directory.is_loaded else None,
        )
        self.last_result = result
        if result.succeeded:
            self.selection.clear()
            self._is_open = False
        return result


__all__ = ["PermissionEditingSession"]
