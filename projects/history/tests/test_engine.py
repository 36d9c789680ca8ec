"""Tests for the undo/redo history engine."""

from datetime import timedelta
from typing import Any

import pytest

from history.engine import HistoryEngine
from history.snapshot import Snapshot


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Document:
    """Minimal owner of a state, recording before each change."""

    def __init__(self, engine: HistoryEngine) -> None:
        self.engine = engine
        self.state: dict[str, Any] = {"items": []}

    def snapshot(self) -> Snapshot:
        return Snapshot.capture(self.state)

    def apply(self, snapshot: Snapshot) -> None:
        self.state = snapshot.restore()

    def add(self, item: str) -> None:
        self.engine.record(self.snapshot())
        self.state["items"].append(item)

    def undo(self) -> bool:
        return self.engine.undo(self.snapshot(), self.apply)

    def redo(self) -> bool:
        return self.engine.redo(self.snapshot(), self.apply)


@pytest.fixture(name="clock")
def fixture_clock() -> FakeClock:
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture(name="engine")
def fixture_engine(clock: FakeClock) -> HistoryEngine:
    """Provide an engine with a small size cap and a one minute window."""
    return HistoryEngine(max_size=5, retention=timedelta(minutes=1), clock=clock)


@pytest.fixture(name="document")
def fixture_document(engine: HistoryEngine) -> Document:
    """Provide a document bound to the engine."""
    return Document(engine)


def test_snapshot_equality_ignores_key_order() -> None:
    """Test that snapshots compare by content."""
    first = Snapshot.capture({"a": 1, "b": [1, 2]})
    second = Snapshot.capture({"b": [1, 2], "a": 1})
    assert first == second
    assert hash(first) == hash(second)
    assert first != Snapshot.capture({"a": 2, "b": [1, 2]})


def test_snapshot_restore_is_a_fresh_copy() -> None:
    """Test that restoring never aliases earlier restores."""
    snapshot = Snapshot.capture({"items": ["x"]})
    restored = snapshot.restore()
    restored["items"].append("y")
    assert snapshot.restore() == {"items": ["x"]}


def test_undo_redo_round_trip(document: Document) -> None:
    """Test that undo returns to the earlier state and redo comes back."""
    document.add("a")
    document.add("b")

    assert document.undo()
    assert document.state == {"items": ["a"]}
    assert document.redo()
    assert document.state == {"items": ["a", "b"]}


def test_undo_on_empty_history(document: Document) -> None:
    """Test that undo and redo fail when there is nothing to apply."""
    assert not document.undo()
    assert not document.redo()
    assert document.state == {"items": []}


def test_record_deduplicates(engine: HistoryEngine) -> None:
    """Test that recording an unchanged state twice stacks it once."""
    snapshot = Snapshot.capture({"items": []})
    assert engine.record(snapshot)
    assert not engine.record(Snapshot.capture({"items": []}))
    assert len(engine.past) == 1


def test_record_clears_redo(document: Document) -> None:
    """Test that a new edit invalidates the redo stack."""
    document.add("a")
    document.add("b")
    document.undo()
    assert document.engine.can_redo

    document.add("c")
    assert not document.engine.can_redo
    assert document.state == {"items": ["a", "c"]}


def test_record_is_ignored_while_restoring(engine: HistoryEngine) -> None:
    """Test that changes made by a restore are not recorded."""
    engine.record(Snapshot.capture({"n": 1}))
    recorded: list[bool] = []

    def apply(snapshot: Snapshot) -> None:
        assert engine.is_restoring
        recorded.append(engine.record(snapshot))

    engine.undo(Snapshot.capture({"n": 2}), apply)
    assert recorded == [False]
    assert not engine.is_restoring


def test_max_size_drops_oldest(document: Document) -> None:
    """Test that the undo stack keeps only the newest entries."""
    for item in "abcdefg":
        document.add(item)

    assert len(document.engine.past) == 5
    while document.undo():
        pass
    assert document.state == {"items": ["a", "b"]}


def test_retention_evicts_idle_entries(document: Document, clock: FakeClock) -> None:
    """Test that entries older than the retention window are dropped."""
    document.add("a")
    clock.advance(30)
    document.add("b")
    clock.advance(45)

    document.engine.prune()
    assert len(document.engine.past) == 1
    assert document.undo()
    assert document.state == {"items": ["a"]}
    assert not document.undo()


def test_flags(document: Document) -> None:
    """Test derived undo, redo and dirty flags."""
    engine = document.engine
    assert not engine.is_dirty

    document.add("a")
    assert engine.can_undo
    assert engine.is_dirty

    document.undo()
    assert not engine.can_undo
    assert engine.can_redo
    assert engine.is_dirty

    engine.clear()
    assert not engine.is_dirty


def test_apply_failure_resets_guard(engine: HistoryEngine) -> None:
    """Test that a failing apply does not leave the engine restoring."""
    engine.record(Snapshot.capture({"n": 1}))

    def apply(_: Snapshot) -> None:
        msg = "broken"
        raise RuntimeError(msg)

    with pytest.raises(RuntimeError, match="broken"):
        engine.undo(Snapshot.capture({"n": 2}), apply)
    assert not engine.is_restoring


@pytest.mark.parametrize(
    ("max_size", "retention"),
    [(0, timedelta(minutes=1)), (10, timedelta(0))],
)
def test_invalid_configuration(max_size: int, retention: timedelta) -> None:
    """Test that non-positive limits are rejected."""
    with pytest.raises(ValueError, match="must be positive"):
        HistoryEngine(max_size=max_size, retention=retention)
