from __future__ import annotations

from pathlib import Path

from branch_permissions.services import (
    PARSE_ERROR_MARKER,
    BranchImportService,
    BranchSelection,
    tokenize,
)

from tests.factories import make_branch, make_sample_directory


def test_tokenize_splits_on_separator_runs_and_trims() -> None:
    raw = " 1,, 2;\t\tCentro \r\n\n Sur ;"

    assert tokenize(raw) == ["1", "2", "Centro", "Sur"]


def test_ids_and_name_fragments_resolve_to_separate_buckets() -> None:
    result = BranchImportService().parse("1, 2, Sucursal Centro", make_sample_directory())

    assert [branch.id for branch in result.matched_by_id] == [1, 2]
    assert [branch.id for branch in result.matched_by_name] == [3]
    assert result.unmatched == []
    assert result.total_matches == 3
    assert not result.failed


def test_label_contained_in_token_also_matches() -> None:
    result = BranchImportService().parse("Sucursal Sur Oriente", make_sample_directory())

    assert [branch.id for branch in result.matched_by_name] == [2]


def test_name_matching_is_case_insensitive() -> None:
    result = BranchImportService().parse("centro NORTE", make_sample_directory())

    assert [branch.id for branch in result.matched_by_name] == [1]


def test_first_directory_match_wins_for_ambiguous_fragment() -> None:
    # "Centro" is a substring of both branch 1 and branch 3.
    result = BranchImportService().parse("Centro", make_sample_directory())

    assert [branch.id for branch in result.matched_by_name] == [1]


def test_repeated_tokens_collapse_by_branch_id() -> None:
    result = BranchImportService().parse("1\n1\n01\nsur\nSUR", make_sample_directory())

    assert [branch.id for branch in result.matched_by_id] == [1]
    assert [branch.id for branch in result.matched_by_name] == [2]
    assert result.total_matches == 2


def test_unknown_numeric_token_is_unmatched() -> None:
    result = BranchImportService().parse("3, 404", make_sample_directory())

    assert [branch.id for branch in result.matched_by_id] == [3]
    assert result.matched_by_name == []
    assert result.unmatched == ["404"]


def test_unknown_name_is_unmatched() -> None:
    result = BranchImportService().parse("Oeste", make_sample_directory())

    assert result.unmatched == ["Oeste"]
    assert result.total_matches == 0


def test_whitespace_only_text_yields_nothing() -> None:
    result = BranchImportService().parse(" \n\t \r\n ", make_sample_directory())

    assert result.total_matches == 0
    assert result.unmatched == []
    assert result.diagnostics == []


def test_blank_labels_never_match_everything() -> None:
    directory = [make_branch(1, "Centro"), make_branch(2, " ")]

    result = BranchImportService().parse("Norte", directory)

    assert result.unmatched == ["Norte"]


def test_non_text_input_becomes_a_diagnostic_instead_of_raising() -> None:
    result = BranchImportService().parse(None, make_sample_directory())  # type: ignore[arg-type]

    assert result.total_matches == 0
    assert result.failed
    assert result.diagnostics[0] == PARSE_ERROR_MARKER


def test_apply_skips_ids_already_selected() -> None:
    directory = make_sample_directory()
    selection = BranchSelection([directory[0]])
    service = BranchImportService()
    result = service.parse("1, Sucursal Centro", directory)

    added = service.apply(result, selection)

    assert [branch.id for branch in added] == [3]
    assert selection.ids() == [1, 3]


def test_apply_does_not_duplicate_a_branch_matched_by_id_and_name() -> None:
    directory = make_sample_directory()
    selection = BranchSelection()
    service = BranchImportService()
    result = service.parse("2, Sur", directory)

    service.apply(result, selection)

    assert result.total_matches == 2
    assert selection.ids() == [2]


def test_parse_file_reads_utf8_text(tmp_path: Path) -> None:
    path = tmp_path / "branches.txt"
    path.write_text("2\nSucursal Centro\nDesconocida\n", encoding="utf-8")

    result = BranchImportService().parse_file(path, make_sample_directory())

    assert result.total_matches == 2
    assert result.unmatched == ["Desconocida"]


def test_parse_file_reports_missing_file(tmp_path: Path) -> None:
    result = BranchImportService().parse_file(tmp_path / "missing.txt", make_sample_directory())

    assert result.failed
    assert result.total_matches == 0
