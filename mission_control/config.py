"""YAML-backed settings for mission-control.

Settings are flat dotted keys (``storage.backend``, ``clock.interval``)
stored as strings. A lookup walks three layers in order: the directory
file ``.mission-control/config.yaml``, the user file
``~/.mission-control/config.yaml``, then ``DEFAULTS``.
"""

from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".mission-control"
CONFIG_FILE_NAME = "config.yaml"

DEFAULTS: dict[str, str] = {
    "storage.backend": "file",
    "storage.path": f"{CONFIG_DIR_NAME}/state",
    "storage.prefix": "mc.",
    "clock.interval": "1",
    "agents.dispatch_delay": "1.2",
}


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


class Config:
    """Settings for one scope, with fallback to the user-level file.

    ``use_global`` edits the user-level file and reads only that file.
    Otherwise the directory-level file is edited and the user-level file
    is consulted for keys it does not set.
    """

    def __init__(self, use_global: bool = False, config_dir: Path | None = None) -> None:
        """Initialize settings.

        Args:
            use_global: Work on the user-level file instead of the directory one.
            config_dir: Explicit directory holding the config file.
        """
        self.is_global = use_global
        if config_dir is not None:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = (Path.home() if use_global else Path.cwd()) / CONFIG_DIR_NAME
        self.config_file = self.config_dir / CONFIG_FILE_NAME

        try:
            self._values = _read_yaml(self.config_file)
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config", path=str(self.config_file), error=str(e))
            raise ValueError(f"Failed to load config from {self.config_file}: {e}") from e

        self._fallback: dict[str, Any] = {}
        user_file = Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        if not self.is_global and user_file != self.config_file:
            try:
                self._fallback = _read_yaml(user_file)
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Ignoring unreadable user config", path=str(user_file), error=str(e))

        logger.debug("Config loaded", path=str(self.config_file), keys=len(self._values), is_global=self.is_global)

    def source(self, key: str) -> str | None:
        """Name the layer a key resolves from: ``local``, ``global``, ``default`` or None."""
        if key in self._values:
            return "global" if self.is_global else "local"
        if key in self._fallback:
            return "global"
        if key in DEFAULTS:
            return "default"
        return None

    def get(self, key: str, default: str | None = None) -> str | None:
        """Resolve a setting.

        An explicit ``default`` wins over the built-in one.
        """
        layer = self.source(key)
        if layer in ("local", "global"):
            return self._values[key] if key in self._values else self._fallback[key]
        if default is None and layer == "default":
            return DEFAULTS[key]
        return default

    def get_float(self, key: str, default: float) -> float:
        value = self.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("Config value is not a number, using default", key=key, value=value)
            return default

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._write()

    def unset(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._write()

    def list(self) -> dict[str, str]:
        """Settings stored in files for this scope, the directory file overriding the user file."""
        return {**self._fallback, **self._values}

    def _write(self) -> None:
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                yaml.safe_dump(self._values, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error("Failed to save config", path=str(self.config_file), error=str(e))
            raise ValueError(f"Failed to save config to {self.config_file}: {e}") from e
        logger.debug("Config saved", path=str(self.config_file), keys=len(self._values))


def get_config(use_global: bool = False) -> Config:
    return Config(use_global=use_global)
