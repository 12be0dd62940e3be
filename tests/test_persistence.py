"""Tests for persistent slices."""

import json
from unittest.mock import MagicMock

import pytest

from mission_control.backend import Backend, StorageError
from mission_control.backends import MemoryBackend
from mission_control.models import Task
from mission_control.persistence import PersistentSlice, record_codec, records_codec, scalar_codec

TASK = Task(id="task_1", title="Ship", created_at=1)


@pytest.fixture
def backend() -> MemoryBackend:
    """Create a backend holding one stored task list."""
    return MemoryBackend(initial={"mc.tasks": json.dumps([TASK.to_dict()])})


@pytest.fixture
def mock_backend() -> MagicMock:
    """Create an empty mock backend."""
    mock = MagicMock(spec=Backend)
    mock.get_item.return_value = None
    return mock


def test_value_before_hydration_is_initial(backend: MemoryBackend) -> None:
    """Test that the stored value is not visible before hydration."""
    initial: tuple = ()
    tasks = PersistentSlice(backend, "mc.tasks", initial, records_codec(Task))
    assert tasks.value is initial
    assert not tasks.hydrated


def test_hydrate_applies_stored_value(backend: MemoryBackend) -> None:
    """Test that hydration replaces the initial value with the stored one."""
    tasks = PersistentSlice(backend, "mc.tasks", (), records_codec(Task))
    assert tasks.hydrate() is True
    assert tasks.value == (TASK,)
    assert tasks.hydrated


def test_hydrate_reads_once(mock_backend: MagicMock) -> None:
    """Test that the backend is consulted at most once."""
    notes = PersistentSlice(mock_backend, "mc.notes", "", scalar_codec(str))
    notes.hydrate()
    notes.hydrate()
    mock_backend.get_item.assert_called_once_with("mc.notes")


def test_hydrate_absent_keeps_initial_and_seeds(mock_backend: MagicMock) -> None:
    """Test that an absent key keeps the initial value and writes it."""
    goal = PersistentSlice(mock_backend, "mc.revenue.goal", 10000.0, scalar_codec(float))
    assert goal.hydrate() is False
    assert goal.value == 10000.0
    mock_backend.set_item.assert_called_once_with("mc.revenue.goal", "10000.0")


@pytest.mark.parametrize("raw", ["{not json", '{"id": "x"}', '[{"id": "x"}]', "42"])
def test_unparseable_value_keeps_initial(raw: str) -> None:
    """Test that corrupt or mis-shaped payloads are treated as absent."""
    backend = MemoryBackend(initial={"mc.tasks": raw})
    initial: tuple = ()
    tasks = PersistentSlice(backend, "mc.tasks", initial, records_codec(Task))
    assert tasks.hydrate() is False
    assert tasks.value is initial


def test_scalar_codec_rejects_wrong_type() -> None:
    """Test that a text slice does not accept a stored number."""
    backend = MemoryBackend(initial={"mc.notes": "12"})
    notes = PersistentSlice(backend, "mc.notes", "", scalar_codec(str))
    notes.hydrate()
    assert notes.value == ""


def test_no_write_before_hydration(mock_backend: MagicMock) -> None:
    """Test that changes made before hydration are not persisted."""
    notes = PersistentSlice(mock_backend, "mc.notes", "", scalar_codec(str))
    notes.replace("draft")
    assert notes.value == "draft"
    mock_backend.set_item.assert_not_called()


def test_hydration_overrides_early_change(backend: MemoryBackend) -> None:
    """Test that the stored value wins over a pre-hydration change."""
    tasks = PersistentSlice(backend, "mc.tasks", (), records_codec(Task))
    tasks.replace((Task(id="task_2", title="Early"),))
    tasks.hydrate()
    assert tasks.value == (TASK,)


def test_write_then_read_round_trip(backend: MemoryBackend) -> None:
    """Test that a fresh slice hydrates the value written by another."""
    tasks = PersistentSlice(backend, "mc.tasks", (), records_codec(Task))
    tasks.hydrate()
    added = Task(id="task_2", title="Review", priority="high", column="in_progress", created_at=2)
    tasks.replace(lambda previous: (added,) + previous)

    fresh = PersistentSlice(backend, "mc.tasks", (), records_codec(Task))
    fresh.hydrate()
    assert fresh.value == (added, TASK)


def test_replace_with_same_object_is_not_a_change(mock_backend: MagicMock) -> None:
    """Test that an updater returning its input writes nothing."""
    notes = PersistentSlice(mock_backend, "mc.notes", "", scalar_codec(str))
    notes.hydrate()
    mock_backend.set_item.reset_mock()
    listener = MagicMock()
    notes.subscribe(listener)

    notes.replace(lambda previous: previous)

    mock_backend.set_item.assert_not_called()
    listener.assert_not_called()


def test_read_failure_is_swallowed(mock_backend: MagicMock) -> None:
    """Test that an unavailable backend keeps the initial value."""
    mock_backend.get_item.side_effect = StorageError("unavailable")
    notes = PersistentSlice(mock_backend, "mc.notes", "initial", scalar_codec(str))
    assert notes.hydrate() is False
    assert notes.value == "initial"
    assert notes.hydrated


def test_write_failure_is_swallowed() -> None:
    """Test that a full backend does not stop in-memory updates."""
    backend = MemoryBackend(quota_bytes=30)
    notes = PersistentSlice(backend, "mc.notes", "", scalar_codec(str))
    notes.hydrate()
    notes.replace("x" * 100)
    assert notes.value == "x" * 100
    assert backend.get_item("mc.notes") == '""'


def test_record_codec_round_trip() -> None:
    """Test that a single-record slice persists through JSON."""
    backend = MemoryBackend()
    task = PersistentSlice(backend, "mc.pinned", TASK, record_codec(Task))
    task.hydrate()
    assert json.loads(backend.get_item("mc.pinned"))["title"] == "Ship"


def test_listener_errors_are_swallowed(mock_backend: MagicMock) -> None:
    """Test that a failing listener does not break replacement."""
    notes = PersistentSlice(mock_backend, "mc.notes", "", scalar_codec(str))
    notes.hydrate()
    seen: list[str] = []
    notes.subscribe(MagicMock(side_effect=RuntimeError("boom")))
    unsubscribe = notes.subscribe(seen.append)

    notes.replace("a")
    unsubscribe()
    notes.replace("b")

    assert seen == ["a"]
    assert notes.value == "b"
