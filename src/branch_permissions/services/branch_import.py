from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from branch_permissions.data import Branch
from branch_permissions.services.selection import BranchSelection
from branch_permissions.utils import get_logger


logger = get_logger(__name__)

TOKEN_SEPARATORS = re.compile(r"[\n\r,;\t]+")
PARSE_ERROR_MARKER = "Error processing import text"


class ImportParseError(Exception):
    """Raised internally when pasted text cannot be tokenized or resolved."""


@dataclass(slots=True)
class ImportResult:
    """Outcome of resolving one block of pasted text against the directory."""

    matched_by_id: list[Branch] = field(default_factory=list)
    matched_by_name: list[Branch] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return len(self.matched_by_id) + len(self.matched_by_name)

    @property
    def failed(self) -> bool:
        return bool(self.diagnostics)

    def matched(self) -> list[Branch]:
        """Both match buckets, id matches first, without repeated ids."""

        seen: set[int] = set()
        ordered: list[Branch] = []
        for branch in [*self.matched_by_id, *self.matched_by_name]:
            if branch.id in seen:
                continue
            seen.add(branch.id)
            ordered.append(branch)
        return ordered


def tokenize(raw_text: str) -> list[str]:
    """Split on runs of newline, comma, semicolon or tab; trim and drop empties."""

    if not isinstance(raw_text, str):
        raise ImportParseError(
            f"Import text must be a string, got {type(raw_text).__name__}"
        )
    return [
        token.strip()
        for token in TOKEN_SEPARATORS.split(raw_text.strip())
        if token.strip()
    ]


class BranchImportService:
    """Resolve free-text branch lists (ids or partial names) into directory entries."""

    def parse(self, raw_text: str, directory: Iterable[Branch]) -> ImportResult:
        branches = list(directory)
        try:
            tokens = tokenize(raw_text)
        except ImportParseError as exc:
            logger.warning("Branch import text could not be tokenized", error=str(exc))
            return ImportResult(diagnostics=[PARSE_ERROR_MARKER, str(exc)])

        result = self._resolve(tokens, branches)
        logger.debug(
            "Branch import parsed",
            tokens=len(tokens),
            by_id=len(result.matched_by_id),
            by_name=len(result.matched_by_name),
            unmatched=len(result.unmatched),
        )
        return result

    def parse_file(self, path: Path, directory: Iterable[Branch]) -> ImportResult:
        """Read ``path`` as UTF-8 text and resolve it.

        An unreadable file is reported like any other parse failure.
        """

        try:
            raw_text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Branch import file unreadable", path=str(path), error=str(exc))
            return ImportResult(diagnostics=[PARSE_ERROR_MARKER, f"{path}: {exc}"])
        return self.parse(raw_text, directory)

    def apply(self, result: ImportResult, selection: BranchSelection) -> list[Branch]:
        """Add every matched branch to ``selection``; already-selected ids are skipped."""

        added = selection.add_many(result.matched())
        logger.info(
            "Branch import applied",
            matched=result.total_matches,
            added=len(added),
            selection_size=len(selection),
        )
        return added

    # ------------------------------------------------------------------ Helpers

    def _resolve(self, tokens: list[str], branches: list[Branch]) -> ImportResult:
        # Reversed so the first entry wins when a caller passes duplicate ids.
        by_id_index = {branch.id: branch for branch in reversed(branches)}
        labels = [
            (branch, branch.label.strip().lower())
            for branch in branches
            if branch.label.strip()
        ]

        by_id: dict[int, Branch] = {}
        by_name: dict[int, Branch] = {}
        unmatched: list[str] = []

        for token in tokens:
            if token.isascii() and token.isdigit():
                branch = by_id_index.get(int(token))
                if branch is None:
                    unmatched.append(token)
                else:
                    by_id.setdefault(branch.id, branch)
                continue

            branch = self._match_name(token, labels)
            if branch is None:
                unmatched.append(token)
            else:
                by_name.setdefault(branch.id, branch)

        return ImportResult(
            matched_by_id=list(by_id.values()),
            matched_by_name=list(by_name.values()),
            unmatched=unmatched,
        )

    @staticmethod
    def _match_name(
        token: str, labels: list[tuple[Branch, str]]
    ) -> Branch | None:
        # First match in directory order wins; candidates are not ranked.
        needle = token.lower()
        for branch, label in labels:
            if needle in label or label in needle:
                return branch
        return None


__all__ = [
    "BranchImportService",
    "ImportParseError",
    "ImportResult",
    "PARSE_ERROR_MARKER",
    "tokenize",
]
