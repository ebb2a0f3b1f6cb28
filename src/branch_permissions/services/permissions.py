from __future__ import annotations

from typing import Iterable

from branch_permissions.api.client import ApiClientFactory
from branch_permissions.api.errors import ApiError, FetchError
from branch_permissions.api.requests import (
    permission_create_request,
    permission_delete_request,
    permission_list_request,
    permission_replace_request,
)
from branch_permissions.data import Branch, PermissionRecord, ResponseValidator
from branch_permissions.services.reconcile import (
    DEFAULT_BATCH_SIZE,
    PermissionReconciler,
    ReconcileResult,
)
from branch_permissions.utils import ProgressSink, get_logger


logger = get_logger(__name__)


class PermissionService:
    """Thin wrapper over the permission record endpoints."""

    def __init__(
        self,
        client_factory: ApiClientFactory,
        *,
        reconciler: PermissionReconciler | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._client_factory = client_factory
        self._validator = ResponseValidator("permissions")
        self.reconciler = reconciler or PermissionReconciler()
        self.batch_size = batch_size

    # ---------------------------------------------------------------- Queries

    async def list_records(self, object_type: str, object_id: int) -> list[PermissionRecord]:
        try:
            payload = await self._client_factory.send(
                permission_list_request(object_type, object_id)
            )
        except ApiError as exc:
            raise FetchError(
                f"Could not load permissions for {object_type} {object_id}: {exc}",
                cause=exc,
            ) from exc
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise FetchError(
                f"Permission list returned {type(payload).__name__}, expected a list"
            )
        self._validator.reset()
        return self._validator.parse_many(PermissionRecord, payload)

    async def list_branch_ids(self, object_type: str, object_id: int) -> list[int]:
        records = await self.list_records(object_type, object_id)
        branch_ids = list(dict.fromkeys(record.branch_id for record in records))
        logger.debug(
            "Persisted permissions loaded",
            object_type=object_type,
            object_id=object_id,
            count=len(branch_ids),
        )
        return branch_ids

    # ---------------------------------------------------------------- Actions

    async def create(self, object_type: str, object_id: int, branch_id: int) -> None:
        await self._client_factory.send(
            permission_create_request(object_type, object_id, branch_id)
        )

    async def delete(self, object_type: str, object_id: int, branch_id: int) -> None:
        await self._client_factory.send(
            permission_delete_request(object_type, object_id, branch_id)
        )

    async def replace_all(
        self, object_type: str, object_id: int, branch_ids: Iterable[int]
    ) -> None:
        """Replace the whole set in one server-side call instead of reconciling."""

        ids = list(dict.fromkeys(branch_ids))
        await self._client_factory.send(
            permission_replace_request(object_type, object_id, ids)
        )
        logger.info(
            "Permission set replaced",
            object_type=object_type,
            object_id=object_id,
            count=len(ids),
        )

    async def reconcile(
        self,
        object_type: str,
        object_id: int,
        desired: Iterable[Branch | int],
        *,
        progress: ProgressSink | None = None,
        batch_size: int | None = None,
        directory_ids: Iterable[int] | None = None,
    ) -> ReconcileResult:
        return await self.reconciler.reconcile(
            object_type,
            object_id,
            desired,
            fetch_persisted=self.list_branch_ids,
            create=self.create,
            delete=self.delete,
            progress=progress,
            batch_size=self.batch_size if batch_size is None else batch_size,
            directory_ids=directory_ids,
        )


__all__ = ["PermissionService"]
