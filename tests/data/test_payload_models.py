from __future__ import annotations

from branch_permissions.data import Branch, PermissionRecord, ResponseValidator, ValidationIssue


def test_branch_accepts_backend_aliases_and_serializes_documented_names() -> None:
    branch = Branch.from_api({"idSucursal": 12, "sucursalName": "Rosario"})

    assert branch.id == 12
    assert str(branch) == "12: Rosario"
    assert branch.to_api() == {"id": 12, "name": "Rosario"}


def test_permission_record_reads_legacy_field_names() -> None:
    record = PermissionRecord.from_api(
        {"idSucursal": 3, "objetoName": "TerminosCondiciones", "idObjeto": 40}
    )

    assert record.key == ("TerminosCondiciones", 40, 3)
    assert record.to_api() == {
        "branchId": 3,
        "objectType": "TerminosCondiciones",
        "objectId": 40,
    }


def test_validator_skips_bad_items_and_reports_them() -> None:
    reported: list[ValidationIssue] = []
    validator = ResponseValidator("branches", issue_callback=reported.append)

    branches = validator.parse_many(
        Branch,
        [{"id": 1, "name": "Centro"}, {"id": "x", "name": "Bad"}, ["not", "a", "dict"]],
    )

    assert [branch.id for branch in branches] == [1]
    issues = validator.issues()
    assert [issue.index for issue in issues] == [1, 2]
    assert issues[0].identifier == "x"
    assert issues[0].fields == ("id",)
    assert issues[1].identifier is None
    assert reported == issues

    validator.reset()
    assert validator.issues() == []
