"""CLI for mission control."""

import threading
from datetime import datetime
from pathlib import Path
from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from mission_control.agent_commands import agent_app, decision_app
from mission_control.backend import Backend
from mission_control.backends import FileBackend, MemoryBackend
from mission_control.config import get_config
from mission_control.config_commands import config_app
from mission_control.dashboard import DEFAULT_DISPATCH_DELAY, Dashboard
from mission_control.finance_commands import client_app, cost_app
from mission_control.output import money, report
from mission_control.planning_commands import event_app, priority_app, task_app
from mission_control.timers import Clock

logger = structlog.get_logger()

app = App(
    help="Mission Control - a local-first operational dashboard",
)

app.command(task_app)
app.command(priority_app)
app.command(event_app)
app.command(cost_app)
app.command(client_app)
app.command(agent_app)
app.command(decision_app)
app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def get_backend() -> Backend:
    """Get the configured storage backend."""
    config = get_config()
    backend_type = config.get("storage.backend")

    if backend_type == "file":
        return FileBackend(root=Path(config.get("storage.path")))
    elif backend_type == "memory":
        return MemoryBackend()
    else:
        raise ValueError(f"Unknown storage backend: {backend_type}")


def open_dashboard() -> Dashboard:
    """Build the dashboard from configuration and load stored state."""
    config = get_config()
    dashboard = Dashboard(
        get_backend(),
        prefix=config.get("storage.prefix"),
        clock=Clock(interval=config.get_float("clock.interval", 1.0)),
        dispatch_delay=config.get_float("agents.dispatch_delay", DEFAULT_DISPATCH_DELAY),
    )
    dashboard.hydrate()
    return dashboard


def format_status(dashboard: Dashboard) -> str:
    """Render the dashboard overview as text."""
    now = dashboard.now
    kanban = dashboard.kanban
    lines = [
        f"Good {dashboard.greeting}, {dashboard.goal.value.name}",
        f"{now:%A, %d %b %Y} • {now:%H:%M:%S}",
        "",
        f"Goal progress     {dashboard.goal_progress}%"
        f"  ({dashboard.days_to_goal} days to {dashboard.goal.value.goal_date_iso})",
        f"Active projects   {dashboard.active_projects}",
        f"Tasks today       {dashboard.tasks_today}",
        f"Board             backlog {len(kanban['backlog'])} • in progress {len(kanban['in_progress'])}"
        f" • done {len(kanban['done'])}",
        f"Monthly costs     {money(dashboard.monthly_cost_total)} {dashboard.cost_currency}/mo",
        f"MRR               {money(dashboard.mrr)}€ of {money(dashboard.revenue_goal.value)}€"
        f" ({dashboard.revenue_progress:.1f}%)",
    ]
    upcoming = dashboard.upcoming_events[:3]
    if upcoming:
        lines.append("")
        lines.append("Upcoming:")
        lines.extend(f"  {e.when_iso}  {e.title}" + (f" @ {e.location}" if e.location else "") for e in upcoming)
    return "\n".join(lines)


@app.command
def status() -> None:
    """Show the dashboard overview."""
    with open_dashboard() as dashboard:
        print(format_status(dashboard))


@app.command
def watch(ticks: int | None = None) -> None:
    """Re-render the overview on every clock tick until interrupted.

    Args:
        ticks: Stop after this many refreshes.
    """
    with open_dashboard() as dashboard:
        done = threading.Event()
        count = 0

        def render(_now: datetime) -> None:
            nonlocal count
            count += 1
            print("\033[2J\033[H" + format_status(dashboard), flush=True)
            if ticks is not None and count >= ticks:
                done.set()

        dashboard.clock.on_tick(render)
        render(dashboard.now)
        dashboard.start()
        try:
            while not done.wait(0.5):
                pass
        except KeyboardInterrupt:
            print()


@app.command
def feed(text: str | None = None, limit: int = 20) -> None:
    """Post to the activity feed, or show the latest entries.

    Args:
        text: Text to post. Without it, the feed is listed.
        limit: Number of entries to list.
    """
    with open_dashboard() as dashboard:
        if text is not None:
            report(dashboard.post_feed(text), "Posted to feed")
            return
        entries = dashboard.activity.value[:limit]
        if not entries:
            print("No activity yet")
            return
        for item in entries:
            print(f"{datetime.fromtimestamp(item.ts / 1000):%d.%m %H:%M}  {item.text}")


@app.command
def goal(name: str | None = None, percent: str | None = None, date: str | None = None) -> None:
    """Show or change the goal settings.

    Args:
        name: Owner name shown in the greeting.
        percent: Goal progress in percent.
        date: Goal date (YYYY-MM-DD).
    """
    with open_dashboard() as dashboard:
        if name is not None or percent is not None or date is not None:
            if not report(dashboard.set_goal(name=name, goal_percent=percent, goal_date_iso=date), "Goal updated"):
                return
        settings = dashboard.goal.value
        days = dashboard.days_to_goal
        print(f"{settings.name}: {dashboard.goal_progress}% • {settings.goal_date_iso} ({days} days)")


@app.command
def notes(text: str | None = None, append: bool = False) -> None:
    """Show or replace the free-form notes.

    Args:
        text: New notes text.
        append: Append the text as a new line instead of replacing.
    """
    with open_dashboard() as dashboard:
        if text is None:
            print(dashboard.notes.value or "(no notes)")
            return
        if append and dashboard.notes.value:
            text = f"{dashboard.notes.value}\n{text}"
        dashboard.set_notes(text)
        print(f"Notes saved ({len(dashboard.notes.value)} characters)")


@app.command
def tab(name: str | None = None) -> None:
    """Show or change the remembered view."""
    with open_dashboard() as dashboard:
        if name is not None:
            report(dashboard.set_tab(name), f"Current view: {name}")
            return
        print(dashboard.tab.value)


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    app(tokens)


def run() -> None:
    app.meta()


if __name__ == "__main__":
    app.meta()
