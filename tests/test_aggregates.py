"""Tests for derived views."""

import random
from datetime import datetime

import pytest

from mission_control import aggregates
from mission_control.models import CalendarItem, Client, CostItem, GoalSettings, Task

NOW = datetime(2026, 3, 15, 12, 0, 0)


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def make_task(task_id: str, column: str, created: datetime) -> Task:
    return Task(id=task_id, title=task_id, column=column, created_at=ms(created))


def make_client(name: str, mrr: float, status: str = "active", start: str = "2026-01-01") -> Client:
    return Client(id=f"cli_{name}", name=name, mrr=mrr, status=status, start_iso=start, created_at=0)


def test_kanban_partition_is_complete() -> None:
    """Test that every task lands in exactly the bucket of its column."""
    rng = random.Random(7)
    columns = ["backlog", "in_progress", "done"]
    tasks = [make_task(f"t{i}", rng.choice(columns), datetime(2026, 3, 1 + i % 20)) for i in range(40)]

    grouped = aggregates.kanban_columns(tasks)

    assert set(grouped) == set(columns)
    seen = [t.id for bucket in grouped.values() for t in bucket]
    assert sorted(seen) == sorted(t.id for t in tasks)
    for column, bucket in grouped.items():
        assert all(t.column == column for t in bucket)


def test_kanban_newest_first_with_stable_ties() -> None:
    """Test ordering inside a column."""
    tasks = [
        make_task("old", "backlog", datetime(2026, 3, 1)),
        make_task("tie1", "backlog", datetime(2026, 3, 5)),
        make_task("new", "backlog", datetime(2026, 3, 9)),
        make_task("tie2", "backlog", datetime(2026, 3, 5)),
    ]
    grouped = aggregates.kanban_columns(tasks)
    assert [t.id for t in grouped["backlog"]] == ["new", "tie1", "tie2", "old"]
    assert grouped["done"] == ()


def test_monthly_cost_total_scenario() -> None:
    """Test the yearly/monthly normalization."""
    costs = [
        CostItem(id="a", label="Domain", amount=120, period="yr"),
        CostItem(id="b", label="Hosting", amount=20, period="mo"),
    ]
    assert aggregates.monthly_cost_total(costs) == pytest.approx(30)
    assert aggregates.monthly_cost_total(list(reversed(costs))) == pytest.approx(30)
    assert aggregates.monthly_cost_total([]) == 0


def test_cost_currency_label() -> None:
    """Test that the total is labelled with the first item's currency."""
    costs = (CostItem(id="a", label="A", amount=1, currency="$"), CostItem(id="b", label="B", amount=1, currency="€"))
    assert aggregates.cost_currency_label(costs) == "$"
    assert aggregates.cost_currency_label(()) == "€"


def test_tasks_today_count() -> None:
    """Test counting tasks created on the current local day."""
    tasks = [
        make_task("morning", "backlog", datetime(2026, 3, 15, 0, 0, 1)),
        make_task("late", "done", datetime(2026, 3, 15, 23, 59)),
        make_task("yesterday", "backlog", datetime(2026, 3, 14, 23, 59, 59)),
    ]
    assert aggregates.tasks_today_count(tasks, NOW) == 2


def test_active_projects_count() -> None:
    """Test counting tasks that are not done."""
    tasks = [
        make_task("a", "backlog", NOW),
        make_task("b", "in_progress", NOW),
        make_task("c", "done", NOW),
    ]
    assert aggregates.active_projects_count(tasks) == 2


@pytest.mark.parametrize(
    ("goal_date", "expected"),
    [
        ("2026-03-17", 2),
        ("2026-03-16", 1),
        ("2026-03-15", 0),
        ("2025-01-01", 0),
        ("not-a-date", 0),
    ],
)
def test_days_to_goal(goal_date: str, expected: int) -> None:
    """Test the countdown, rounded up and floored at zero."""
    assert aggregates.days_to_goal(goal_date, NOW) == expected


def test_days_to_goal_at_midnight() -> None:
    """Test that exactly one day before is one day."""
    assert aggregates.days_to_goal("2026-03-16", datetime(2026, 3, 15)) == 1


def test_goal_progress_is_clamped() -> None:
    """Test clamping of the goal percentage."""
    assert aggregates.goal_progress(GoalSettings(name="n", goal_percent=140, goal_date_iso="2026-12-31")) == 100
    assert aggregates.goal_progress(GoalSettings(name="n", goal_percent=-5, goal_date_iso="2026-12-31")) == 0
    assert aggregates.goal_progress(GoalSettings(name="n", goal_percent=42, goal_date_iso="2026-12-31")) == 42


@pytest.mark.parametrize(("hour", "greeting"), [(0, "morning"), (11, "morning"), (12, "afternoon"), (18, "evening")])
def test_greeting_for(hour: int, greeting: str) -> None:
    """Test the time-of-day greeting."""
    assert aggregates.greeting_for(datetime(2026, 3, 15, hour)) == greeting


def test_mrr_counts_only_active_clients() -> None:
    """Test that pending and churned clients do not count."""
    clients = [
        make_client("Acme", 500),
        make_client("Beta", 300, status="pending"),
        make_client("Gone", 900, status="churned"),
    ]
    assert aggregates.mrr(clients) == 500


def test_revenue_series_scenario() -> None:
    """Test the trailing six months for a client starting in January."""
    series = aggregates.revenue_series([make_client("Acme", 500)], NOW)

    assert [b.key for b in series] == ["2025-10", "2025-11", "2025-12", "2026-01", "2026-02", "2026-03"]
    assert [b.label for b in series] == ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
    assert [b.total for b in series] == [0, 0, 0, 500, 500, 500]


def test_revenue_series_excludes_inactive_clients() -> None:
    """Test that only active clients contribute to any bucket."""
    clients = [
        make_client("Acme", 500, start="2025-11-20"),
        make_client("Beta", 300, status="pending", start="2025-01-01"),
        make_client("Gone", 900, status="churned", start="2025-01-01"),
        make_client("Broken", 100, start="soon"),
    ]
    series = aggregates.revenue_series(clients, NOW)
    assert [b.total for b in series] == [0, 500, 500, 500, 500, 500]


def test_revenue_series_future_start() -> None:
    """Test that a client starting after the window contributes nothing."""
    series = aggregates.revenue_series([make_client("Later", 500, start="2026-04-01")], NOW)
    assert all(b.total == 0 for b in series)


def test_revenue_metrics() -> None:
    """Test progress, gap and growth against the revenue goal."""
    assert aggregates.revenue_progress(500, 10000) == pytest.approx(5.0)
    assert aggregates.revenue_progress(20000, 10000) == 100
    assert aggregates.revenue_progress(5, 0) == 100
    assert aggregates.revenue_gap(500, 10000) == 9500
    assert aggregates.revenue_gap(12000, 10000) == 0
    assert aggregates.growth_needed(0, 10000) is None
    assert aggregates.growth_needed(500, 10000) == pytest.approx(1900)
    assert aggregates.growth_needed(12000, 10000) == 0


def test_upcoming_events() -> None:
    """Test that past events are dropped and the rest sorted."""
    calendar = (
        CalendarItem(id="b", title="Later", when_iso="2026-03-20T09:00"),
        CalendarItem(id="p", title="Past", when_iso="2026-03-14T09:00"),
        CalendarItem(id="a", title="Soon", when_iso="2026-03-15T13:00"),
        CalendarItem(id="x", title="Broken", when_iso="whenever"),
    )
    assert [e.id for e in aggregates.upcoming_events(calendar, NOW)] == ["a", "b"]


def test_view_cache_uses_input_identity() -> None:
    """Test memoization on the identity of the inputs."""
    cache = aggregates.ViewCache()
    tasks = (make_task("a", "backlog", NOW),)
    first = cache.get("kanban", aggregates.kanban_columns, tasks)
    second = cache.get("kanban", aggregates.kanban_columns, tasks)
    assert first is second
    assert (cache.hits, cache.misses) == (1, 1)

    replaced = [tasks[0], make_task("b", "done", NOW)]
    third = cache.get("kanban", aggregates.kanban_columns, replaced)
    assert third is not first
    assert (cache.hits, cache.misses) == (1, 2)
    assert [t.id for t in third["done"]] == ["b"]
