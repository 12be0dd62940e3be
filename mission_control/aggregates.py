"""Derived views computed from slice values.

Every function here is pure: same inputs, same output, no persistence.
Times are compared in the process's local time zone.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Callable, Iterable

from mission_control.models import TASK_COLUMNS, CalendarItem, Client, CostItem, GoalSettings, Task

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class RevenueBucket:
    """One month of the revenue series."""

    key: str
    label: str
    total: float


def _local(now: datetime) -> datetime:
    """Naive local-time view of ``now``."""
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def _local_date_of_ms(ms: int) -> date:
    return datetime.fromtimestamp(ms / 1000).date()


def kanban_columns(tasks: Iterable[Task]) -> dict[str, tuple[Task, ...]]:
    """Group tasks by column, newest first within each column.

    Tasks with equal timestamps keep their input order.
    """
    by: dict[str, list[Task]] = {column: [] for column in TASK_COLUMNS}
    for task in tasks:
        by[task.column].append(task)
    return {column: tuple(sorted(items, key=lambda t: t.created_at, reverse=True)) for column, items in by.items()}


def monthly_cost(item: CostItem) -> float:
    return item.amount / 12 if item.period == "yr" else item.amount


def monthly_cost_total(costs: Iterable[CostItem]) -> float:
    """Sum of all costs normalized to a month. Currencies are not converted."""
    return sum((monthly_cost(c) for c in costs), 0.0)


def cost_currency_label(costs: tuple[CostItem, ...], default: str = "€") -> str:
    """Currency label for the monthly total, taken from the first cost item.

    Mixed currencies are shown under this one label.
    """
    return costs[0].currency if costs else default


def tasks_today_count(tasks: Iterable[Task], now: datetime) -> int:
    today = _local(now).date()
    return sum(1 for t in tasks if _local_date_of_ms(t.created_at) == today)


def active_projects_count(tasks: Iterable[Task]) -> int:
    return sum(1 for t in tasks if t.column != "done")


def days_to_goal(goal_date_iso: str, now: datetime) -> int:
    """Whole days until local midnight of the goal date, rounded up, never negative."""
    try:
        target = datetime.combine(date.fromisoformat(goal_date_iso), time.min)
    except (TypeError, ValueError):
        return 0
    diff = (target - _local(now)).total_seconds()
    return max(0, math.ceil(diff / 86400))


def goal_progress(goal: GoalSettings) -> int:
    return min(100, max(0, goal.goal_percent))


def greeting_for(now: datetime) -> str:
    hour = _local(now).hour
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"


def mrr(clients: Iterable[Client]) -> float:
    """Monthly recurring revenue of active clients."""
    return sum((c.mrr for c in clients if c.status == "active"), 0.0)


def revenue_progress(current_mrr: float, revenue_goal: float) -> float:
    """MRR as a percentage of the goal, capped at 100."""
    return min(100.0, current_mrr / max(1.0, revenue_goal) * 100)


def revenue_gap(current_mrr: float, revenue_goal: float) -> float:
    return max(0.0, revenue_goal - current_mrr)


def growth_needed(current_mrr: float, revenue_goal: float) -> float | None:
    """Percent growth of MRR needed to reach the goal; None without revenue."""
    if current_mrr == 0:
        return None
    return max(0.0, (revenue_goal - current_mrr) / max(1.0, current_mrr) * 100)


def _month_shift(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def revenue_series(clients: Iterable[Client], now: datetime, months: int = 6) -> tuple[RevenueBucket, ...]:
    """Trailing monthly revenue ending at the current month, oldest first.

    An active client contributes its MRR to every month from its start
    month on. Status is read as of now, not per month.
    """
    local = _local(now)
    keys = [_month_shift(local.year, local.month, -i) for i in range(months - 1, -1, -1)]
    totals = {key: 0.0 for key in keys}
    for client in clients:
        if client.status != "active":
            continue
        try:
            start = date.fromisoformat(client.start_iso)
        except (TypeError, ValueError):
            continue
        for key in keys:
            if key >= (start.year, start.month):
                totals[key] += client.mrr
    return tuple(
        RevenueBucket(key=f"{year:04d}-{month:02d}", label=MONTH_ABBR[month - 1], total=totals[(year, month)])
        for year, month in keys
    )


def upcoming_events(calendar: Iterable[CalendarItem], now: datetime) -> tuple[CalendarItem, ...]:
    """Events at or after now, soonest first. Unparseable dates are skipped."""
    local = _local(now)
    found = []
    for item in calendar:
        try:
            when = _local(datetime.fromisoformat(item.when_iso))
        except (TypeError, ValueError):
            continue
        if when >= local:
            found.append((when, item))
    found.sort(key=lambda pair: pair[0])
    return tuple(item for _, item in found)


class ViewCache:
    """Memoizes derived views on the identity of their inputs.

    Slice values are replaced, never mutated, so an input that ``is`` the
    cached one means the cached result is still valid.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[tuple[Any, ...], Any]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, name: str, fn: Callable[..., Any], *inputs: Any) -> Any:
        entry = self._entries.get(name)
        if entry is not None:
            cached_inputs, value = entry
            if len(cached_inputs) == len(inputs) and all(a is b for a, b in zip(cached_inputs, inputs)):
                self.hits += 1
                return value
        self.misses += 1
        value = fn(*inputs)
        self._entries[name] = (inputs, value)
        return value

    def clear(self) -> None:
        self._entries.clear()
