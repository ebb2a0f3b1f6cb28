from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Literal, Sequence

from branch_permissions.api.errors import ApiError, FetchError
from branch_permissions.data import Branch
from branch_permissions.services.base import EventHook, ServiceErrorEvent
from branch_permissions.utils import (
    NullProgressSink,
    ProgressPhase,
    ProgressSink,
    ProgressUpdate,
    get_logger,
)


logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 100

PersistedFetcher = Callable[[str, int], Awaitable[Iterable[int]]]
BranchOperation = Callable[[str, int, int], Awaitable[object]]
OperationKind = Literal["create", "delete"]


@dataclass(slots=True)
class PermissionDiff:
    to_delete: list[int]
    to_create: list[int]
    stale: list[int] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.to_delete or self.to_create)


@dataclass(slots=True)
class OperationFailure:
    """A single create/delete call that did not succeed."""

    branch_id: int
    operation: OperationKind
    error: Exception

    @property
    def message(self) -> str:
        return f"{self.operation} branch {self.branch_id} failed: {self.error}"


@dataclass(slots=True)
class ReconcileResult:
    object_type: str
    object_id: int
    deleted: list[int] = field(default_factory=list)
    created: list[int] = field(default_factory=list)
    failures: list[OperationFailure] = field(default_factory=list)
    stale: list[int] = field(default_factory=list)
    chunks: int = 0

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def failure_count(self) -> int:
        return len(self.failures)


class PermissionReconciler:
    """Converge a persisted permission set onto the desired branch selection.

    The delete pass always finishes before the create pass starts. Each pass
    runs in chunks of ``batch_size`` concurrent calls, and a chunk fully
    settles before the next one is issued. Individual call failures are
    collected in ``ReconcileResult.failures``; nothing is retried.
    """

    def __init__(self) -> None:
        self.completed: EventHook[ReconcileResult] = EventHook()
        self.errors: EventHook[ServiceErrorEvent] = EventHook()

    # ----------------------------------------------------------------- Diffing

    def diff(
        self,
        desired_ids: Iterable[int],
        persisted_ids: Iterable[int],
        *,
        directory_ids: Iterable[int] | None = None,
    ) -> PermissionDiff:
        desired = list(dict.fromkeys(desired_ids))
        persisted = list(dict.fromkeys(persisted_ids))
        desired_set = set(desired)
        persisted_set = set(persisted)

        stale: list[int] = []
        if directory_ids is not None:
            known = set(directory_ids)
            stale = [
                branch_id
                for branch_id in persisted
                if branch_id not in known and branch_id not in desired_set
            ]

        stale_set = set(stale)
        to_delete = [
            branch_id
            for branch_id in persisted
            if branch_id not in desired_set and branch_id not in stale_set
        ]
        to_create = [branch_id for branch_id in desired if branch_id not in persisted_set]
        return PermissionDiff(to_delete=to_delete, to_create=to_create, stale=stale)

    # ---------------------------------------------------------------- Apply ops

    async def reconcile(
        self,
        object_type: str,
        object_id: int,
        desired: Iterable[Branch | int],
        *,
        fetch_persisted: PersistedFetcher,
        create: BranchOperation,
        delete: BranchOperation,
        progress: ProgressSink | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        directory_ids: Iterable[int] | None = None,
    ) -> ReconcileResult:
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        sink = progress or NullProgressSink()
        desired_ids = [_branch_id(item) for item in desired]

        try:
            persisted_ids = list(await fetch_persisted(object_type, object_id))
        except FetchError as exc:
            self._fetch_failed(object_type, object_id, exc)
            raise
        except ApiError as exc:
            error = FetchError(
                f"Could not load permissions for {object_type} {object_id}: {exc}",
                cause=exc,
            )
            self._fetch_failed(object_type, object_id, error)
            raise error from exc

        diff = self.diff(desired_ids, persisted_ids, directory_ids=directory_ids)
        result = ReconcileResult(
            object_type=object_type,
            object_id=object_id,
            stale=list(diff.stale),
        )
        if diff.stale:
            logger.warning(
                "Skipping permissions for branches missing from the directory",
                object_type=object_type,
                object_id=object_id,
                branch_ids=diff.stale,
            )
        if diff.is_noop:
            logger.debug(
                "Permission set already matches selection",
                object_type=object_type,
                object_id=object_id,
            )
            self.completed.emit(result)
            return result

        try:
            await self._run_pass(
                "deleting",
                diff.to_delete,
                lambda branch_id: delete(object_type, object_id, branch_id),
                result=result,
                succeeded=result.deleted,
                sink=sink,
                batch_size=batch_size,
            )
            await self._run_pass(
                "creating",
                diff.to_create,
                lambda branch_id: create(object_type, object_id, branch_id),
                result=result,
                succeeded=result.created,
                sink=sink,
                batch_size=batch_size,
            )
        finally:
            _safe_hide(sink)

        log = logger.warning if result.failures else logger.info
        log(
            "Permission reconciliation finished",
            object_type=object_type,
            object_id=object_id,
            deleted=len(result.deleted),
            created=len(result.created),
            failures=result.failure_count,
            chunks=result.chunks,
        )
        self.completed.emit(result)
        return result

    async def _run_pass(
        self,
        phase: ProgressPhase,
        branch_ids: Sequence[int],
        operation: Callable[[int], Awaitable[object]],
        *,
        result: ReconcileResult,
        succeeded: list[int],
        sink: ProgressSink,
        batch_size: int,
    ) -> None:
        total = len(branch_ids)
        if not total:
            return
        kind: OperationKind = "delete" if phase == "deleting" else "create"
        current = 0
        for start in range(0, total, batch_size):
            chunk = branch_ids[start : start + batch_size]
            outcomes = await asyncio.gather(
                *(_invoke(operation, branch_id) for branch_id in chunk),
                return_exceptions=True,
            )
            for branch_id, outcome in zip(chunk, outcomes):
                if isinstance(outcome, Exception):
                    logger.warning(
                        "Permission operation failed",
                        operation=kind,
                        object_type=result.object_type,
                        object_id=result.object_id,
                        branch_id=branch_id,
                        error=str(outcome),
                    )
                    result.failures.append(
                        OperationFailure(branch_id=branch_id, operation=kind, error=outcome)
                    )
                elif isinstance(outcome, BaseException):
                    # Cancellation aborts the run; settled outcomes of this chunk stay recorded.
                    raise outcome
                else:
                    succeeded.append(branch_id)
            current += len(chunk)
            result.chunks += 1
            logger.debug(
                "Permission chunk settled",
                phase=phase,
                size=len(chunk),
                current=current,
                total=total,
            )
            _safe_report(sink, ProgressUpdate(phase=phase, current=current, total=total))

    def _fetch_failed(self, object_type: str, object_id: int, error: FetchError) -> None:
        logger.error(
            "Persisted permission fetch failed; nothing was changed",
            object_type=object_type,
            object_id=object_id,
            error=str(error),
        )
        self.errors.emit(ServiceErrorEvent(object_type, object_id, error))


async def _invoke(operation: Callable[[int], Awaitable[object]], branch_id: int) -> object:
    return await operation(branch_id)


def _branch_id(item: Branch | int) -> int:
    if isinstance(item, Branch):
        return item.id
    return int(item)


def _safe_report(sink: ProgressSink, update: ProgressUpdate) -> None:
    try:
        sink.report(update)
    except Exception:  # pragma: no cover - progress sinks should not break reconciliation
        logger.exception("Progress sink raised while reporting")


def _safe_hide(sink: ProgressSink) -> None:
    try:
        sink.hide()
    except Exception:  # pragma: no cover - progress sinks should not break reconciliation
        logger.exception("Progress sink raised while hiding")


__all__ = [
    "BranchOperation",
    "DEFAULT_BATCH_SIZE",
    "OperationFailure",
    "PermissionDiff",
    "PermissionReconciler",
    "PersistedFetcher",
    "ReconcileResult",
]
