"""Task board, priority and calendar commands for mission control CLI."""

from typing import Literal

from cyclopts import App

from mission_control.output import report, resolve

task_app = App(name="task", help="Manage the task board")
priority_app = App(name="priority", help="Manage dashboard priorities")
event_app = App(name="event", help="Manage calendar events")

Column = Literal["backlog", "in_progress", "done"]
Level = Literal["high", "medium", "low"]


@task_app.command
def add(title: str, description: str = "", priority: Level = "medium", column: Column = "backlog") -> None:
    """Create a task."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.create_task(title, description, priority, column)
        if result.applied:
            print(f"Created task {result.entity.id}: {result.entity.title}")
        else:
            report(result, "")


@task_app.command
def edit(
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    priority: Level | None = None,
    column: Column | None = None,
) -> None:
    """Update a task's fields."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        task_id = resolve(dashboard.tasks.value, task_id)
        result = dashboard.update_task(task_id, title=title, description=description, priority=priority, column=column)
        report(result, f"Updated task {task_id}")


@task_app.command
def move(task_id: str, column: Column) -> None:
    """Move a task to another column."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        task_id = resolve(dashboard.tasks.value, task_id)
        report(dashboard.move_task(task_id, column), f"Moved task {task_id} to {column.replace('_', ' ')}")


@task_app.command
def delete(*task_ids: str) -> None:
    """Delete one or more tasks."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        deleted = 0
        for task_id in task_ids:
            result = dashboard.delete_task(resolve(dashboard.tasks.value, task_id))
            deleted += result.applied
            if not result.applied:
                print(f"Skipped {task_id}: {result.reason}")
        print(f"Deleted {deleted} task(s)")


@task_app.command
def board() -> None:
    """Show tasks grouped by column, newest first."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        for column, tasks in dashboard.kanban.items():
            print(f"{column.replace('_', ' ').title()} ({len(tasks)})")
            for task in tasks:
                print(f"  [{task.priority}] {task.id}: {task.title}")
            print()


@priority_app.command(name="add")
def add_priority(text: str = "New priority") -> None:
    """Add a priority."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.add_priority(text)
        report(result, f"Added priority {result.entity.id}" if result.applied else "")


@priority_app.command
def toggle(priority_id: str) -> None:
    """Mark a priority done, or reopen it."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.toggle_priority(resolve(dashboard.priorities.value, priority_id))
        report(result, f"{result.entity.text}: {'done' if result.entity.done else 'open'}" if result.applied else "")


@priority_app.command(name="edit")
def edit_priority(priority_id: str, text: str) -> None:
    """Change a priority's text."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        report(dashboard.edit_priority(resolve(dashboard.priorities.value, priority_id), text), "Priority updated")


@priority_app.command(name="delete")
def delete_priority(priority_id: str) -> None:
    """Delete a priority."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        report(dashboard.delete_priority(resolve(dashboard.priorities.value, priority_id)), "Priority deleted")


@priority_app.command(name="list")
def list_priorities() -> None:
    """List priorities."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        items = dashboard.priorities.value
        if not items:
            print("No priorities yet")
            return
        for item in items:
            print(f"{'✓' if item.done else '○'} {item.id}: {item.text}")


@event_app.command(name="add")
def add_event(title: str, when: str, location: str | None = None) -> None:
    """Add a calendar event.

    Args:
        title: Event title.
        when: Date and time, e.g. 2026-03-15T10:30.
        location: Optional location.
    """
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.add_event(title, when, location)
        report(result, f"Added event {result.entity.id}" if result.applied else "")


@event_app.command(name="remove")
def remove_event(event_id: str) -> None:
    """Remove a calendar event."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        report(dashboard.remove_event(resolve(dashboard.calendar.value, event_id)), "Event removed")


@event_app.command(name="list")
def list_events(all_: bool = False) -> None:
    """List upcoming calendar events.

    Args:
        all_: Include past events.
    """
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        events = dashboard.calendar.value if all_ else dashboard.upcoming_events
        if not events:
            print("No events")
            return
        for event in events:
            where = f" @ {event.location}" if event.location else ""
            print(f"{event.when_iso}  {event.id}: {event.title}{where}")
