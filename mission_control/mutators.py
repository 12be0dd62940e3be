"""Entity mutators.

Each mutator takes the previous collection and returns ``(collection, result)``.
The collection is a new tuple when the operation applies and the very same
object when it is rejected, so persistent slices only write real changes.
Mutators never raise on bad input; they return a rejected result instead.
"""

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Any, Iterable, TypeVar

from mission_control.models import (
    ACTIVITY_LIMIT,
    AGENT_ACTIVITY_LIMIT,
    AGENT_STATUSES,
    CLIENT_STATUSES,
    COST_PERIODS,
    TASK_COLUMNS,
    TASK_PRIORITIES,
    ActivityItem,
    Agent,
    AgentActivity,
    CalendarItem,
    Client,
    CostItem,
    Decision,
    Priority,
    Task,
    new_id,
    now_ms,
)

R = TypeVar("R")


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutator call.

    ``message`` is the activity log line for an applied mutation (None when
    the mutation is not logged); ``reason`` explains a rejection.
    """

    applied: bool
    entity: Any = None
    message: str | None = None
    reason: str | None = None


def applied(entity: Any, message: str | None = None) -> MutationResult:
    return MutationResult(applied=True, entity=entity, message=message)


def rejected(reason: str) -> MutationResult:
    return MutationResult(applied=False, reason=reason)


def _stamp(now: int | None) -> int:
    return now_ms() if now is None else now


def _find(items: Iterable[R], item_id: str) -> R | None:
    for item in items:
        if item.id == item_id:  # type: ignore[attr-defined]
            return item
    return None


def _swap(items: tuple[R, ...], updated: R) -> tuple[R, ...]:
    return tuple(updated if item.id == updated.id else item for item in items)  # type: ignore[attr-defined]


def _without(items: tuple[R, ...], item_id: str) -> tuple[R, ...]:
    return tuple(item for item in items if item.id != item_id)  # type: ignore[attr-defined]


def parse_amount(raw: Any) -> float | None:
    """Parse a user-supplied number; None for non-numeric input."""
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def format_amount(value: float) -> str:
    """Render a number the way activity lines show it (no trailing .0)."""
    return str(int(value)) if float(value).is_integer() else str(value)


def _valid_date(value: str, with_time: bool = False) -> bool:
    try:
        if with_time:
            datetime.fromisoformat(value)
        else:
            date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


# Activity log


def append_activity(
    activity: tuple[ActivityItem, ...], text: str, now: int | None = None
) -> tuple[tuple[ActivityItem, ...], MutationResult]:
    """Prepend a log line, keeping the newest ``ACTIVITY_LIMIT`` entries."""
    text = (text or "").strip()
    if not text:
        return activity, rejected("text is required")
    item = ActivityItem(id=new_id("act"), ts=_stamp(now), text=text)
    return ((item,) + activity)[:ACTIVITY_LIMIT], applied(item)


# Tasks


def create_task(
    tasks: tuple[Task, ...],
    title: str,
    description: str = "",
    priority: str = "medium",
    column: str = "backlog",
    now: int | None = None,
) -> tuple[tuple[Task, ...], MutationResult]:
    title = (title or "").strip()
    if not title:
        return tasks, rejected("title is required")
    if priority not in TASK_PRIORITIES:
        return tasks, rejected(f"unknown priority {priority!r}")
    if column not in TASK_COLUMNS:
        return tasks, rejected(f"unknown column {column!r}")
    task = Task(
        id=new_id("task"),
        title=title,
        description=description,
        priority=priority,
        column=column,
        created_at=_stamp(now),
    )
    return (task,) + tasks, applied(task, f"Created task: {title}")


def update_task(
    tasks: tuple[Task, ...],
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    priority: str | None = None,
    column: str | None = None,
) -> tuple[tuple[Task, ...], MutationResult]:
    current = _find(tasks, task_id)
    if current is None:
        return tasks, rejected(f"task {task_id} not found")
    changes: dict[str, Any] = {}
    if title is not None:
        title = title.strip()
        if not title:
            return tasks, rejected("title is required")
        changes["title"] = title
    if description is not None:
        changes["description"] = description
    if priority is not None:
        if priority not in TASK_PRIORITIES:
            return tasks, rejected(f"unknown priority {priority!r}")
        changes["priority"] = priority
    if column is not None:
        if column not in TASK_COLUMNS:
            return tasks, rejected(f"unknown column {column!r}")
        changes["column"] = column
    task = replace(current, **changes)
    return _swap(tasks, task), applied(task, f"Updated task: {task.title}")


def delete_task(tasks: tuple[Task, ...], task_id: str) -> tuple[tuple[Task, ...], MutationResult]:
    current = _find(tasks, task_id)
    if current is None:
        return tasks, rejected(f"task {task_id} not found")
    return _without(tasks, task_id), applied(current, f"Deleted task: {current.title}")


def move_task(tasks: tuple[Task, ...], task_id: str, column: str) -> tuple[tuple[Task, ...], MutationResult]:
    if column not in TASK_COLUMNS:
        return tasks, rejected(f"unknown column {column!r}")
    current = _find(tasks, task_id)
    if current is None:
        return tasks, rejected(f"task {task_id} not found")
    task = replace(current, column=column)
    return _swap(tasks, task), applied(task, f"Moved task: {task.title} → {column.replace('_', ' ')}")


# Priorities


def add_priority(
    priorities: tuple[Priority, ...], text: str = "New priority", now: int | None = None
) -> tuple[tuple[Priority, ...], MutationResult]:
    text = (text or "").strip()
    if not text:
        return priorities, rejected("text is required")
    item = Priority(id=new_id("pri"), text=text, done=False, created_at=_stamp(now))
    return (item,) + priorities, applied(item, "Added a priority")


def toggle_priority(priorities: tuple[Priority, ...], priority_id: str) -> tuple[tuple[Priority, ...], MutationResult]:
    current = _find(priorities, priority_id)
    if current is None:
        return priorities, rejected(f"priority {priority_id} not found")
    item = replace(current, done=not current.done)
    verb = "completed" if item.done else "reopened"
    return _swap(priorities, item), applied(item, f"Priority {verb}: {item.text}")


def edit_priority(
    priorities: tuple[Priority, ...], priority_id: str, text: str
) -> tuple[tuple[Priority, ...], MutationResult]:
    current = _find(priorities, priority_id)
    if current is None:
        return priorities, rejected(f"priority {priority_id} not found")
    text = (text or "").strip()
    if not text:
        return priorities, rejected("text is required")
    item = replace(current, text=text)
    return _swap(priorities, item), applied(item, f"Edited priority: {text}")


def delete_priority(priorities: tuple[Priority, ...], priority_id: str) -> tuple[tuple[Priority, ...], MutationResult]:
    current = _find(priorities, priority_id)
    if current is None:
        return priorities, rejected(f"priority {priority_id} not found")
    return _without(priorities, priority_id), applied(current, f"Deleted priority: {current.text}")


# Costs


def add_cost(
    costs: tuple[CostItem, ...],
    label: str,
    amount: Any,
    currency: str = "€",
    period: str = "mo",
    now: int | None = None,
) -> tuple[tuple[CostItem, ...], MutationResult]:
    label = (label or "").strip()
    value = parse_amount(amount)
    if not label:
        return costs, rejected("label is required")
    if value is None:
        return costs, rejected(f"amount {amount!r} is not a number")
    if period not in COST_PERIODS:
        return costs, rejected(f"unknown period {period!r}")
    item = CostItem(
        id=new_id("cost"), label=label, amount=value, currency=currency, period=period, created_at=_stamp(now)
    )
    return (item,) + costs, applied(item, f"Added cost: {label} {format_amount(value)}{currency}/{period}")


def remove_cost(costs: tuple[CostItem, ...], cost_id: str) -> tuple[tuple[CostItem, ...], MutationResult]:
    current = _find(costs, cost_id)
    if current is None:
        return costs, rejected(f"cost {cost_id} not found")
    return _without(costs, cost_id), applied(current, f"Removed cost: {current.label}")


# Calendar


def add_event(
    calendar: tuple[CalendarItem, ...],
    title: str,
    when_iso: str,
    location: str | None = None,
    now: int | None = None,
) -> tuple[tuple[CalendarItem, ...], MutationResult]:
    title = (title or "").strip()
    if not title:
        return calendar, rejected("title is required")
    if not _valid_date(when_iso, with_time=True):
        return calendar, rejected(f"invalid date {when_iso!r}")
    location = (location or "").strip() or None
    item = CalendarItem(id=new_id("cal"), title=title, when_iso=when_iso, location=location, created_at=_stamp(now))
    return (item,) + calendar, applied(item, f"Added event: {title}")


def remove_event(calendar: tuple[CalendarItem, ...], event_id: str) -> tuple[tuple[CalendarItem, ...], MutationResult]:
    current = _find(calendar, event_id)
    if current is None:
        return calendar, rejected(f"event {event_id} not found")
    return _without(calendar, event_id), applied(current, f"Removed event: {current.title}")


# Clients


def add_client(
    clients: tuple[Client, ...],
    name: str,
    mrr: Any,
    status: str = "active",
    start_iso: str | None = None,
    now: int | None = None,
) -> tuple[tuple[Client, ...], MutationResult]:
    stamp = _stamp(now)
    name = (name or "").strip()
    value = parse_amount(mrr)
    if not name:
        return clients, rejected("name is required")
    if value is None:
        return clients, rejected(f"mrr {mrr!r} is not a number")
    if status not in CLIENT_STATUSES:
        return clients, rejected(f"unknown status {status!r}")
    if start_iso is None:
        start_iso = datetime.fromtimestamp(stamp / 1000).date().isoformat()
    if not _valid_date(start_iso):
        return clients, rejected(f"invalid start date {start_iso!r}")
    client = Client(id=new_id("cli"), name=name, mrr=value, status=status, start_iso=start_iso, created_at=stamp)
    return (client,) + clients, applied(client, f"Added client: {name} ({format_amount(value)}€/mo)")


def update_client(
    clients: tuple[Client, ...],
    client_id: str,
    name: str | None = None,
    mrr: Any = None,
    status: str | None = None,
    start_iso: str | None = None,
) -> tuple[tuple[Client, ...], MutationResult]:
    current = _find(clients, client_id)
    if current is None:
        return clients, rejected(f"client {client_id} not found")
    changes: dict[str, Any] = {}
    if name is not None:
        name = name.strip()
        if not name:
            return clients, rejected("name is required")
        changes["name"] = name
    if mrr is not None:
        value = parse_amount(mrr)
        if value is None:
            return clients, rejected(f"mrr {mrr!r} is not a number")
        changes["mrr"] = value
    if status is not None:
        if status not in CLIENT_STATUSES:
            return clients, rejected(f"unknown status {status!r}")
        changes["status"] = status
    if start_iso is not None:
        if not _valid_date(start_iso):
            return clients, rejected(f"invalid start date {start_iso!r}")
        changes["start_iso"] = start_iso
    client = replace(current, **changes)
    return _swap(clients, client), applied(client, f"Updated client: {client.name}")


def remove_client(clients: tuple[Client, ...], client_id: str) -> tuple[tuple[Client, ...], MutationResult]:
    current = _find(clients, client_id)
    if current is None:
        return clients, rejected(f"client {client_id} not found")
    return _without(clients, client_id), applied(current, f"Removed client: {current.name}")


# Agents


def dispatch_agent_task(
    agents: tuple[Agent, ...], agent_id: str, text: str, now: int | None = None
) -> tuple[tuple[Agent, ...], MutationResult]:
    """Hand a task to an agent: log it on the agent and mark it busy."""
    text = (text or "").strip()
    if not text:
        return agents, rejected("task text is required")
    current = _find(agents, agent_id)
    if current is None:
        return agents, rejected(f"agent {agent_id} not found")
    stamp = _stamp(now)
    entry = AgentActivity(id=new_id("aa"), ts=stamp, text=f"Task: {text}")
    agent = replace(
        current,
        activity=((entry,) + current.activity)[:AGENT_ACTIVITY_LIMIT],
        last_active=stamp,
        status="busy",
    )
    return _swap(agents, agent), applied(agent, f"Sent task to {agent.name}")


def set_agent_status(
    agents: tuple[Agent, ...], agent_id: str, status: str
) -> tuple[tuple[Agent, ...], MutationResult]:
    if status not in AGENT_STATUSES:
        return agents, rejected(f"unknown status {status!r}")
    current = _find(agents, agent_id)
    if current is None:
        return agents, rejected(f"agent {agent_id} not found")
    agent = replace(current, status=status)
    return _swap(agents, agent), applied(agent, f"Agent {agent.name} is now {status}")


def finish_agent_task(agents: tuple[Agent, ...], agent_id: str) -> tuple[tuple[Agent, ...], MutationResult]:
    """Flip a busy agent back to online. Not logged."""
    current = _find(agents, agent_id)
    if current is None:
        return agents, rejected(f"agent {agent_id} not found")
    if current.status != "busy":
        return agents, rejected(f"agent {current.name} is {current.status}, not busy")
    agent = replace(current, status="online")
    return _swap(agents, agent), applied(agent)


# Decisions


def record_decision(
    decisions: tuple[Decision, ...],
    question: str,
    summary: str,
    consulted: Iterable[str] = (),
    now: int | None = None,
) -> tuple[tuple[Decision, ...], MutationResult]:
    question = (question or "").strip()
    summary = (summary or "").strip()
    if not question or not summary:
        return decisions, rejected("question and summary are required")
    names = tuple(dict.fromkeys(n.strip() for n in consulted if n and n.strip()))
    stamp = _stamp(now)
    decision = Decision(
        id=new_id("dec"),
        date_iso=datetime.fromtimestamp(stamp / 1000, tz=timezone.utc).isoformat(),
        question=question,
        summary=summary,
        consulted=names,
    )
    return (decision,) + decisions, applied(decision, f"Decision recorded: {question}")
