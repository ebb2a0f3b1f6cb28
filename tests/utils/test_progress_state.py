from __future__ import annotations

from branch_permissions.utils import ProgressSnapshot, ProgressState, ProgressUpdate


def test_update_label_and_percent() -> None:
    update = ProgressUpdate(phase="creating", current=3, total=4)

    assert update.label == "Granting branch permissions (3/4)"
    assert update.percent_complete == 75.0
    assert ProgressUpdate(phase="deleting", current=0, total=0).percent_complete is None


def test_state_reports_and_hides_through_callback() -> None:
    snapshots: list[ProgressSnapshot] = []
    state = ProgressState(snapshots.append)

    state.report(ProgressUpdate(phase="deleting", current=2, total=5))
    state.hide()

    assert snapshots[0] == ProgressSnapshot(
        total=5,
        current=2,
        visible=True,
        label="Removing branch permissions (2/5)",
        phase="deleting",
    )
    assert snapshots[-1].visible is False
    assert state.current == 2


def test_current_is_clamped_to_total() -> None:
    state = ProgressState()

    state.report(ProgressUpdate(phase="creating", current=9, total=4))

    assert state.current == 4


def test_reset_clears_previous_run() -> None:
    state = ProgressState()
    state.report(ProgressUpdate(phase="creating", current=1, total=1))

    state.reset()

    assert state.snapshot() == ProgressSnapshot(
        total=0, current=0, visible=False, label="", phase=None
    )


def test_failing_callback_does_not_interrupt_reporting() -> None:
    def explode(snapshot: ProgressSnapshot) -> None:
        raise RuntimeError("ui gone")

    state = ProgressState()
    state.bind(explode)

    state.report(ProgressUpdate(phase="creating", current=1, total=2))

    assert state.visible is True
