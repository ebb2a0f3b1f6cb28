from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal


ApiMethod = Literal["GET", "POST", "DELETE"]

BRANCHES_PATH = "/branches"
PERMISSIONS_PATH = "/permissions"
PERMISSIONS_REPLACE_PATH = "/permissions/batch-replace"


@dataclass(slots=True)
class ApiRequest:
    """Structured representation of one call against the permission backend."""

    method: ApiMethod
    url: str
    params: dict[str, Any] | None = None
    body: Any | None = None


def branch_directory_request() -> ApiRequest:
    return ApiRequest(method="GET", url=BRANCHES_PATH)


def permission_list_request(object_type: str, object_id: int) -> ApiRequest:
    """Fetch every permission record attached to one content object."""

    return ApiRequest(
        method="GET",
        url=PERMISSIONS_PATH,
        params={"objectType": object_type, "objectId": object_id},
    )


def permission_create_request(
    object_type: str, object_id: int, branch_id: int
) -> ApiRequest:
    return ApiRequest(
        method="POST",
        url=PERMISSIONS_PATH,
        body={
            "objectType": object_type,
            "objectId": object_id,
            "branchId": branch_id,
        },
    )


def permission_delete_request(
    object_type: str, object_id: int, branch_id: int
) -> ApiRequest:
    return ApiRequest(
        method="DELETE",
        url=PERMISSIONS_PATH,
        params={
            "objectType": object_type,
            "objectId": object_id,
            "branchId": branch_id,
        },
    )


def permission_replace_request(
    object_type: str, object_id: int, branch_ids: Iterable[int]
) -> ApiRequest:
    """Replace the full permission set server-side in a single call."""

    return ApiRequest(
        method="POST",
        url=PERMISSIONS_REPLACE_PATH,
        body={
            "objectType": object_type,
            "objectId": object_id,
            "branchIds": list(branch_ids),
        },
    )


__all__ = [
    "ApiMethod",
    "ApiRequest",
    "BRANCHES_PATH",
    "PERMISSIONS_PATH",
    "PERMISSIONS_REPLACE_PATH",
    "branch_directory_request",
    "permission_create_request",
    "permission_delete_request",
    "permission_list_request",
    "permission_replace_request",
]
