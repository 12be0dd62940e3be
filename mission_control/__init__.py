"""Mission Control - a local-first operational dashboard."""

from mission_control.dashboard import Dashboard

__all__ = ["Dashboard"]
