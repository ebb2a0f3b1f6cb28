from __future__ import annotations

import json

import httpx
import pytest

from branch_permissions.api.errors import FetchError
from branch_permissions.services import PermissionService

from tests.factories import make_branch, make_client_factory


@pytest.mark.asyncio
async def test_list_branch_ids_queries_by_object(respx_mock, api_base_url) -> None:
    route = respx_mock.get(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(
            200,
            json=[{"branchId": 4}, {"idSucursal": 9, "objetoName": "Trivias"}, {"branchId": 4}],
        )
    )
    service = PermissionService(make_client_factory(api_base_url))

    branch_ids = await service.list_branch_ids("Trivias", 12)

    assert branch_ids == [4, 9]
    params = route.calls.last.request.url.params
    assert params["objectType"] == "Trivias"
    assert params["objectId"] == "12"


@pytest.mark.asyncio
async def test_list_failure_is_a_fetch_error(respx_mock, api_base_url) -> None:
    respx_mock.get(f"{api_base_url}/permissions").mock(return_value=httpx.Response(500))
    service = PermissionService(make_client_factory(api_base_url))

    with pytest.raises(FetchError):
        await service.list_branch_ids("Trivias", 12)


@pytest.mark.asyncio
async def test_create_and_delete_use_documented_wire_format(respx_mock, api_base_url) -> None:
    create_route = respx_mock.post(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(201, json={"branchId": 3})
    )
    delete_route = respx_mock.delete(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(204)
    )
    service = PermissionService(make_client_factory(api_base_url))

    await service.create("Cuponera", 8, 3)
    await service.delete("Cuponera", 8, 5)

    assert json.loads(create_route.calls.last.request.content) == {
        "objectType": "Cuponera",
        "objectId": 8,
        "branchId": 3,
    }
    params = delete_route.calls.last.request.url.params
    assert dict(params) == {"objectType": "Cuponera", "objectId": "8", "branchId": "5"}


@pytest.mark.asyncio
async def test_replace_all_sends_deduplicated_ids(respx_mock, api_base_url) -> None:
    route = respx_mock.post(f"{api_base_url}/permissions/batch-replace").mock(
        return_value=httpx.Response(200, json={"ok": True})
    )
    service = PermissionService(make_client_factory(api_base_url))

    await service.replace_all("BannerHome", 1, [3, 1, 3])

    assert json.loads(route.calls.last.request.content) == {
        "objectType": "BannerHome",
        "objectId": 1,
        "branchIds": [3, 1],
    }


@pytest.mark.asyncio
async def test_reconcile_records_http_failures_per_branch(respx_mock, api_base_url) -> None:
    respx_mock.get(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(200, json=[{"branchId": 1}, {"branchId": 2}])
    )
    delete_route = respx_mock.delete(f"{api_base_url}/permissions").mock(
        side_effect=lambda request: httpx.Response(
            404 if request.url.params["branchId"] == "2" else 204
        )
    )
    create_route = respx_mock.post(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(201)
    )
    service = PermissionService(make_client_factory(api_base_url), batch_size=10)

    result = await service.reconcile("BannerHome", 1, [make_branch(3)])

    assert delete_route.call_count == 2
    assert create_route.call_count == 1
    assert result.deleted == [1]
    assert result.created == [3]
    assert [(f.operation, f.branch_id) for f in result.failures] == [("delete", 2)]
    assert result.failures[0].error.status_code == 404


@pytest.mark.asyncio
async def test_explicit_zero_batch_size_is_rejected_not_defaulted(
    respx_mock, api_base_url
) -> None:
    respx_mock.get(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(200, json=[])
    )
    service = PermissionService(make_client_factory(api_base_url), batch_size=10)

    with pytest.raises(ValueError):
        await service.reconcile("BannerHome", 1, [make_branch(3)], batch_size=0)
