from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from branch_permissions import cli
from branch_permissions.config import SettingsManager

from tests.factories import branch_payloads, make_sample_directory


@pytest.fixture
def isolated_settings(clean_env, tmp_path: Path, api_base_url: str):
    clean_env.setenv("BRANCH_PERMISSIONS_API_BASE_URL", api_base_url)
    clean_env.setattr(cli, "SettingsManager", lambda: SettingsManager(tmp_path / "cli.env"))
    return clean_env


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--no-log-file", *argv])
    return excinfo.value.code


def _mock_backend(respx_mock, api_base_url: str, persisted: list[int]) -> None:
    respx_mock.get(f"{api_base_url}/branches").mock(
        return_value=httpx.Response(200, json=branch_payloads(make_sample_directory()))
    )
    respx_mock.get(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(200, json=[{"branchId": bid} for bid in persisted])
    )


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_show_lists_selected_branches(
    isolated_settings, respx_mock, api_base_url, capsys
) -> None:
    _mock_backend(respx_mock, api_base_url, persisted=[2])

    code = _run(["show", "BannerHome", "4"])

    assert code == 0
    assert "2: Sur" in capsys.readouterr().out


def test_show_reports_fetch_failures(
    isolated_settings, respx_mock, api_base_url, capsys
) -> None:
    respx_mock.get(f"{api_base_url}/branches").mock(return_value=httpx.Response(500))

    code = _run(["show", "BannerHome", "4"])

    assert code == 2
    assert "nothing was changed" in capsys.readouterr().err


def test_sync_reconciles_against_file(
    isolated_settings, respx_mock, api_base_url, tmp_path: Path, capsys
) -> None:
    _mock_backend(respx_mock, api_base_url, persisted=[1])
    delete_route = respx_mock.delete(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(204)
    )
    create_route = respx_mock.post(f"{api_base_url}/permissions").mock(
        return_value=httpx.Response(201)
    )
    source = tmp_path / "branches.txt"
    source.write_text("Sur\n3\n", encoding="utf-8")

    code = _run(["sync", "Trivias", "9", str(source)])

    out = capsys.readouterr().out
    assert code == 0
    assert delete_route.calls.last.request.url.params["branchId"] == "1"
    assert create_route.call_count == 2
    assert "Deleted 1, created 2." in out


def test_sync_replace_uses_batch_endpoint(
    isolated_settings, respx_mock, api_base_url, tmp_path: Path
) -> None:
    _mock_backend(respx_mock, api_base_url, persisted=[1])
    route = respx_mock.post(f"{api_base_url}/permissions/batch-replace").mock(
        return_value=httpx.Response(200)
    )
    source = tmp_path / "branches.txt"
    source.write_text("2", encoding="utf-8")

    code = _run(["sync", "--append", "--replace", "Trivias", "9", str(source)])

    assert code == 0
    assert json.loads(route.calls.last.request.content)["branchIds"] == [1, 2]


def test_import_reports_unmatched_tokens(
    isolated_settings, respx_mock, api_base_url, tmp_path: Path, capsys
) -> None:
    respx_mock.get(f"{api_base_url}/branches").mock(
        return_value=httpx.Response(200, json=branch_payloads(make_sample_directory()))
    )
    source = tmp_path / "branches.txt"
    source.write_text("1;Atlantis", encoding="utf-8")

    code = _run(["import", str(source)])

    out = capsys.readouterr().out
    assert code == 0
    assert "Matched by id:   1" in out
    assert "! Atlantis" in out


@pytest.mark.parametrize("value", ["0", "-5", "many"])
def test_sync_rejects_non_positive_batch_size(
    isolated_settings, tmp_path: Path, value: str, capsys
) -> None:
    source = tmp_path / "branches.txt"
    source.write_text("1", encoding="utf-8")

    code = _run(["sync", "--batch-size", value, "Trivias", "9", str(source)])

    assert code == 2
    assert "positive integer" in capsys.readouterr().err
