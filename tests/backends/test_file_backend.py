"""Tests for the file backend."""

from pathlib import Path
from unittest.mock import patch

import pytest

from mission_control.backend import StorageError
from mission_control.backends import FileBackend


def test_missing_root_reads_none(tmp_path: Path) -> None:
    """Test reading before anything was written."""
    backend = FileBackend(tmp_path / "state")
    assert backend.get_item("mc.tasks") is None
    assert backend.keys() == []


def test_write_creates_one_file_per_key(tmp_path: Path) -> None:
    """Test that each key is stored in its own JSON file."""
    backend = FileBackend(tmp_path / "state")
    backend.set_item("mc.revenue.goal", "10000")
    backend.set_item("mc.tasks", "[]")

    assert (tmp_path / "state" / "mc.revenue.goal.json").read_text(encoding="utf-8") == "10000"
    assert backend.get_item("mc.tasks") == "[]"
    assert backend.keys() == ["mc.revenue.goal", "mc.tasks"]


def test_overwrite_leaves_no_temp_files(tmp_path: Path) -> None:
    """Test atomic replacement of an existing value."""
    backend = FileBackend(tmp_path)
    backend.set_item("mc.notes", '"a"')
    backend.set_item("mc.notes", '"b"')
    assert backend.get_item("mc.notes") == '"b"'
    assert sorted(p.name for p in tmp_path.iterdir()) == ["mc.notes.json"]


def test_remove_item(tmp_path: Path) -> None:
    """Test removing present and missing keys."""
    backend = FileBackend(tmp_path)
    backend.set_item("mc.tab", '"notes"')
    backend.remove_item("mc.tab")
    backend.remove_item("mc.tab")
    assert backend.get_item("mc.tab") is None


def test_invalid_key(tmp_path: Path) -> None:
    """Test that keys cannot escape the state directory."""
    backend = FileBackend(tmp_path)
    with pytest.raises(StorageError):
        backend.set_item("../outside", "1")


def test_write_failure_is_wrapped(tmp_path: Path) -> None:
    """Test that OS errors surface as StorageError."""
    backend = FileBackend(tmp_path)
    with patch("mission_control.backends.file.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(StorageError):
            backend.set_item("mc.tasks", "[]")
    assert backend.get_item("mc.tasks") is None
    assert list(tmp_path.iterdir()) == []
