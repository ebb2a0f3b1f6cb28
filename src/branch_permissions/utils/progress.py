from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Protocol

from branch_permissions.utils.logging import get_logger


logger = get_logger(__name__)

ProgressPhase = Literal["deleting", "creating"]

_PHASE_LABELS: dict[str, str] = {
    "deleting": "Removing branch permissions",
    "creating": "Granting branch permissions",
}


@dataclass(slots=True, frozen=True)
class ProgressUpdate:
    """One report from a reconciliation pass."""

    phase: ProgressPhase
    current: int
    total: int

    @property
    def label(self) -> str:
        prefix = _PHASE_LABELS.get(self.phase, self.phase)
        return f"{prefix} ({self.current}/{self.total})"

    @property
    def percent_complete(self) -> float | None:
        if not self.total:
            return None
        return min((max(self.current, 0) / self.total) * 100, 100.0)


class ProgressSink(Protocol):
    """Write-only target the reconciler publishes progress to."""

    def report(self, update: ProgressUpdate) -> None: ...

    def hide(self) -> None: ...


@dataclass(slots=True, frozen=True)
class ProgressSnapshot:
    total: int
    current: int
    visible: bool
    label: str
    phase: str | None = None


ProgressCallback = Callable[[ProgressSnapshot], None]


class ProgressState:
    """Mutable progress holder owned by a single editing session.

    There is no locking: one reconciliation run is the sole writer, and
    callers must not share an instance between concurrent runs.
    """

    __slots__ = ("_total", "_current", "_visible", "_label", "_phase", "_callback")

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._total = 0
        self._current = 0
        self._visible = False
        self._label = ""
        self._phase: str | None = None

    def bind(self, callback: ProgressCallback) -> None:
        self._callback = callback

    @property
    def total(self) -> int:
        return self._total

    @property
    def current(self) -> int:
        return self._current

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def label(self) -> str:
        return self._label

    @property
    def phase(self) -> str | None:
        return self._phase

    def report(self, update: ProgressUpdate) -> None:
        self._phase = update.phase
        self._total = update.total
        self._current = min(update.current, update.total)
        self._label = update.label
        self._visible = True
        self._emit()

    def hide(self) -> None:
        self._visible = False
        self._emit()

    def reset(self) -> None:
        self._total = 0
        self._current = 0
        self._visible = False
        self._label = ""
        self._phase = None
        self._emit()

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            total=self._total,
            current=self._current,
            visible=self._visible,
            label=self._label,
            phase=self._phase,
        )

    def _emit(self) -> None:
        callback = self._callback
        if callback is None:
            return
        try:
            callback(self.snapshot())
        except Exception:
            logger.exception("Progress callback raised an exception")


class NullProgressSink:
    """Sink that discards every update."""

    def report(self, update: ProgressUpdate) -> None:
        return None

    def hide(self) -> None:
        return None


__all__ = [
    "NullProgressSink",
    "ProgressCallback",
    "ProgressPhase",
    "ProgressSink",
    "ProgressSnapshot",
    "ProgressState",
    "ProgressUpdate",
]
