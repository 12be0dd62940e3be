"""File backend implementation storing one JSON document per key."""

import os
import tempfile
from pathlib import Path

import structlog

from mission_control.backend import Backend, StorageError

logger = structlog.get_logger()

_SUFFIX = ".json"


class FileBackend(Backend):
    """Directory-backed store: each key lives in ``<root>/<key>.json``."""

    def __init__(self, root: str | Path) -> None:
        """Initialize file backend.

        Args:
            root: Directory holding the state files (created if missing)
        """
        self.root = Path(root)
        logger.debug("Initializing file backend", root=str(self.root))

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}{_SUFFIX}"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.root)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
            logger.debug("State file written", path=str(path), size=len(value))
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {key!r}: {e}") from e

    def keys(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name[: -len(_SUFFIX)] for p in self.root.glob(f"*{_SUFFIX}") if not p.name.startswith("."))
