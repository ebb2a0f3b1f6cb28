from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from branch_permissions.data import Branch
from branch_permissions.services.base import EventHook
from branch_permissions.utils import get_logger


logger = get_logger(__name__)


def filter_branches(branches: Iterable[Branch], query: str | None) -> list[Branch]:
    """Return the branches whose label contains ``query`` (case-insensitive)."""

    needle = (query or "").strip().lower()
    if not needle:
        return list(branches)
    return [branch for branch in branches if needle in branch.label.lower()]


@dataclass(slots=True)
class SelectionChangedEvent:
    added: list[int]
    removed: list[int]
    size: int


class BranchSelection:
    """Ordered, id-unique set of the branches chosen in one editing session."""

    def __init__(self, branches: Iterable[Branch] | None = None) -> None:
        self._items: dict[int, Branch] = {}
        self.changed: EventHook[SelectionChangedEvent] = EventHook()
        if branches is not None:
            for branch in branches:
                self._items.setdefault(branch.id, branch)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Branch]:
        return iter(list(self._items.values()))

    def __contains__(self, branch: object) -> bool:
        if isinstance(branch, Branch):
            return branch.id in self._items
        return False

    def contains(self, branch_id: int) -> bool:
        return branch_id in self._items

    def ids(self) -> list[int]:
        return list(self._items)

    def branches(self) -> list[Branch]:
        return list(self._items.values())

    # ---------------------------------------------------------------- Mutations

    def hydrate(
        self, existing_branch_ids: Iterable[int], directory: Iterable[Branch]
    ) -> None:
        """Replace the selection with the persisted ids that still exist in ``directory``."""

        index = {branch.id: branch for branch in directory}
        previous = set(self._items)
        self._items = {}
        dropped = 0
        for branch_id in existing_branch_ids:
            branch = index.get(branch_id)
            if branch is None:
                dropped += 1
                continue
            self._items.setdefault(branch.id, branch)
        if dropped:
            logger.debug("Dropped stale permission ids during hydration", count=dropped)
        self._notify(
            added=[branch_id for branch_id in self._items if branch_id not in previous],
            removed=[branch_id for branch_id in previous if branch_id not in self._items],
        )

    def toggle(self, branch: Branch) -> bool:
        """Add ``branch`` if absent, remove it if present. Returns the new membership."""

        if branch.id in self._items:
            del self._items[branch.id]
            self._notify(added=[], removed=[branch.id])
            return False
        self._items[branch.id] = branch
        self._notify(added=[branch.id], removed=[])
        return True

    def select_all_filtered(self, filtered: Iterable[Branch]) -> list[Branch]:
        """Union with the filtered subset; selections outside it are kept."""

        added = self._add(filtered)
        self._notify(added=[branch.id for branch in added], removed=[])
        return added

    def deselect_all_filtered(self, filtered: Iterable[Branch]) -> list[int]:
        """Remove only the branches in the filtered subset."""

        removed: list[int] = []
        for branch in filtered:
            if self._items.pop(branch.id, None) is not None:
                removed.append(branch.id)
        self._notify(added=[], removed=removed)
        return removed

    def add_many(self, branches: Iterable[Branch]) -> list[Branch]:
        """Id-deduplicating union; returns the branches that were actually new."""

        added = self._add(branches)
        self._notify(added=[branch.id for branch in added], removed=[])
        return added

    def clear(self) -> None:
        removed = list(self._items)
        self._items = {}
        self._notify(added=[], removed=removed)

    # ----------------------------------------------------------------- Helpers

    def _add(self, branches: Iterable[Branch]) -> list[Branch]:
        added: list[Branch] = []
        for branch in branches:
            if branch.id in self._items:
                continue
            self._items[branch.id] = branch
            added.append(branch)
        return added

    def _notify(self, *, added: list[int], removed: list[int]) -> None:
        if not added and not removed:
            return
        self.changed.emit(
            SelectionChangedEvent(added=added, removed=removed, size=len(self._items))
        )


__all__ = ["BranchSelection", "SelectionChangedEvent", "filter_branches"]
