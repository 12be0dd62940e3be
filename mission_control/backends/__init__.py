"""Backend implementations."""

from mission_control.backends.file import FileBackend
from mission_control.backends.memory import MemoryBackend

__all__ = ["FileBackend", "MemoryBackend"]
