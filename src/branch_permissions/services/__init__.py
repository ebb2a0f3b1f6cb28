"""Business logic service layer for branch permissions."""

from .base import EventHook, ServiceErrorEvent
from .branch_import import (
    PARSE_ERROR_MARKER,
    BranchImportService,
    ImportParseError,
    ImportResult,
    tokenize,
)
from .directory import BranchDirectoryService, DirectoryLoadedEvent
from .editor import PermissionEditingSession
from .permissions import PermissionService
from .reconcile import (
    OperationFailure,
    PermissionDiff,
    PermissionReconciler,
    ReconcileResult,
)
from .registry import ServiceRegistry
from .selection import BranchSelection, SelectionChangedEvent, filter_branches

__all__ = [
    "EventHook",
    "ServiceErrorEvent",
    "PARSE_ERROR_MARKER",
    "BranchImportService",
    "ImportParseError",
    "ImportResult",
    "tokenize",
    "BranchDirectoryService",
    "DirectoryLoadedEvent",
    "PermissionEditingSession",
    "PermissionService",
    "OperationFailure",
    "PermissionDiff",
    "PermissionReconciler",
    "ReconcileResult",
    "ServiceRegistry",
    "BranchSelection",
    "SelectionChangedEvent",
    "filter_branches",
]
