"""Configuration commands for mission control CLI."""

from cyclopts import App

from mission_control.config import DEFAULTS, get_config

config_app = App(name="config", help="Manage configuration")


def _scope(global_: bool) -> str:
    return "global" if global_ else "local"


@config_app.command
def set(key: str, value: str, global_: bool = False) -> None:
    """Set a configuration setting.

    Args:
        key: Configuration key, e.g. storage.backend, storage.path or agents.dispatch_delay
        value: Configuration value
        global_: If True, set in global config. If False, set in local config.
    """
    if key not in DEFAULTS:
        print(f"Warning: {key} is not a recognised setting")
    get_config(use_global=global_).set(key, value)
    print(f"Set {key} = {value} ({_scope(global_)})")


@config_app.command
def unset(key: str, global_: bool = False) -> None:
    """Unset a configuration setting, restoring its fallback value.

    Args:
        key: Configuration key
        global_: If True, unset from global config. If False, unset from local config.
    """
    config = get_config(use_global=global_)
    config.unset(key)
    print(f"Unset {key} ({_scope(global_)}), now {config.get(key) or 'unset'}")


@config_app.command
def get(key: str, global_: bool = False) -> None:
    """Show the effective value of a setting.

    Args:
        key: Configuration key
        global_: If True, read global config only. If False, read with global fallback.
    """
    value = get_config(use_global=global_).get(key)
    if value is None:
        print(f"{key} is not set")
    else:
        print(f"{key} = {value}")


@config_app.command(name="list")
def list_config(global_: bool = False, defaults: bool = True) -> None:
    """List configured settings next to the built-in defaults.

    Args:
        global_: If True, list global config only. If False, list merged config.
        defaults: Include built-in defaults that are not overridden.
    """
    config = get_config(use_global=global_)
    settings = config.list()
    rows = [(key, str(value), config.source(key) or _scope(global_)) for key, value in settings.items()]
    if defaults:
        rows.extend((key, value, "default") for key, value in DEFAULTS.items() if key not in settings)

    if not rows:
        print(f"No {_scope(global_)} configuration settings")
        return

    width = max(len(key) for key, _, _ in rows)
    for key, value, source in sorted(rows):
        print(f"{key.ljust(width)} = {value}  [{source}]")
