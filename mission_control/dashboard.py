"""Process-scoped state container for the dashboard."""

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable

import structlog

from mission_control import aggregates, mutators
from mission_control.backend import Backend
from mission_control.models import (
    ActivityItem,
    Agent,
    CalendarItem,
    Client,
    CostItem,
    Decision,
    GoalSettings,
    Priority,
    Task,
    sample_agents,
)
from mission_control.mutators import MutationResult, rejected
from mission_control.persistence import PersistentSlice, record_codec, records_codec, scalar_codec
from mission_control.timers import Clock, Scheduler

logger = structlog.get_logger()

DEFAULT_PREFIX = "mc."
DEFAULT_REVENUE_GOAL = 10000.0
DEFAULT_DISPATCH_DELAY = 1.2
TAB_KEYS = ("dashboard", "projects", "timeline", "notes", "revenue", "command")


def _days_to_goal(goal: GoalSettings, now: datetime) -> int:
    return aggregates.days_to_goal(goal.goal_date_iso, now)


class Dashboard:
    """Owns every persisted slice, the mutators over them and the derived views.

    Construct once per process, call ``hydrate`` to load stored state,
    ``start`` to run the clock, and ``close`` (or use as a context manager)
    to stop the clock and cancel pending timers.
    """

    def __init__(
        self,
        backend: Backend,
        prefix: str = DEFAULT_PREFIX,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
        dispatch_delay: float = DEFAULT_DISPATCH_DELAY,
        owner: str = "Nils",
    ) -> None:
        """Initialize the dashboard.

        Args:
            backend: Durable key-value store
            prefix: Prefix prepended to every storage key
            clock: Clock driving time-relative views (defaults to a 1-second clock)
            scheduler: Scheduler for delayed agent transitions
            dispatch_delay: Seconds before a dispatched agent goes back online
            owner: Default owner name for the goal settings
        """
        self.backend = backend
        self.prefix = prefix
        self.clock = clock or Clock()
        self.scheduler = scheduler or Scheduler()
        self.dispatch_delay = dispatch_delay
        self._cache = aggregates.ViewCache()
        self._slices: dict[str, PersistentSlice] = {}

        current_year = self.clock.read().year
        default_goal = GoalSettings(name=owner, goal_percent=42, goal_date_iso=date(current_year, 12, 31).isoformat())

        self.goal: PersistentSlice[GoalSettings] = self._slice("goal", default_goal, record_codec(GoalSettings))
        self.priorities: PersistentSlice[tuple[Priority, ...]] = self._slice("priorities", (), records_codec(Priority))
        self.activity: PersistentSlice[tuple[ActivityItem, ...]] = self._slice(
            "activity", (), records_codec(ActivityItem)
        )
        self.tasks: PersistentSlice[tuple[Task, ...]] = self._slice("tasks", (), records_codec(Task))
        self.notes: PersistentSlice[str] = self._slice("notes", "", scalar_codec(str))
        self.tab: PersistentSlice[str] = self._slice("tab", "dashboard", scalar_codec(str))
        self.costs: PersistentSlice[tuple[CostItem, ...]] = self._slice("costs", (), records_codec(CostItem))
        self.calendar: PersistentSlice[tuple[CalendarItem, ...]] = self._slice(
            "calendar", (), records_codec(CalendarItem)
        )
        self.revenue_goal: PersistentSlice[float] = self._slice(
            "revenue.goal", DEFAULT_REVENUE_GOAL, scalar_codec(float)
        )
        self.clients: PersistentSlice[tuple[Client, ...]] = self._slice("revenue.clients", (), records_codec(Client))
        self.agents: PersistentSlice[tuple[Agent, ...]] = self._slice(
            "agents", sample_agents(self._stamp()), records_codec(Agent)
        )
        self.decisions: PersistentSlice[tuple[Decision, ...]] = self._slice("decisions", (), records_codec(Decision))

        logger.debug("Dashboard initialized", prefix=prefix, slices=len(self._slices))

    def _slice(self, name: str, initial: Any, codec: Any) -> PersistentSlice:
        key = f"{self.prefix}{name}"
        item = PersistentSlice(self.backend, key, initial, codec)
        item.subscribe(lambda _value: logger.debug("Slice changed", key=key))
        self._slices[name] = item
        return item

    def _stamp(self) -> int:
        return int(self.clock.read().timestamp() * 1000)

    @property
    def slices(self) -> dict[str, PersistentSlice]:
        return dict(self._slices)

    @property
    def hydrated(self) -> bool:
        return all(s.hydrated for s in self._slices.values())

    def hydrate(self) -> dict[str, bool]:
        """Load stored state into every slice.

        Returns:
            Mapping of slice name to whether a stored value was applied
        """
        loaded = {name: s.hydrate() for name, s in self._slices.items()}
        logger.info("Dashboard hydrated", loaded=[name for name, ok in loaded.items() if ok])
        return loaded

    # Lifecycle

    def start(self) -> None:
        self.clock.start()

    def close(self) -> None:
        self.clock.stop()
        self.scheduler.close()
        logger.debug("Dashboard closed")

    def wait_for_pending(self, timeout: float | None = None) -> None:
        """Block until scheduled transitions have run."""
        self.scheduler.join(timeout)

    def __enter__(self) -> "Dashboard":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Mutations

    def _apply(self, target: PersistentSlice, mutator: Callable[..., Any], *args: Any, **kwargs: Any) -> MutationResult:
        outcome: list[MutationResult] = []

        def update(previous: Any) -> Any:
            collection, result = mutator(previous, *args, **kwargs)
            outcome.append(result)
            return collection

        target.replace(update)
        result = outcome[0]
        if not result.applied:
            logger.info("Mutation rejected", key=target.key, operation=mutator.__name__, reason=result.reason)
            return result
        logger.debug("Mutation applied", key=target.key, operation=mutator.__name__)
        if result.message:
            self.log_activity(result.message)
        return result

    def log_activity(self, text: str) -> MutationResult:
        """Prepend a line to the activity log (capped, newest first)."""
        outcome: list[MutationResult] = []

        def update(previous: tuple[ActivityItem, ...]) -> tuple[ActivityItem, ...]:
            collection, result = mutators.append_activity(previous, text, now=self._stamp())
            outcome.append(result)
            return collection

        self.activity.replace(update)
        return outcome[0]

    def post_feed(self, text: str) -> MutationResult:
        result = self.log_activity(text)
        if not result.applied:
            logger.info("Feed post rejected", reason=result.reason)
        return result

    def create_task(
        self, title: str, description: str = "", priority: str = "medium", column: str = "backlog"
    ) -> MutationResult:
        return self._apply(self.tasks, mutators.create_task, title, description, priority, column, now=self._stamp())

    def update_task(self, task_id: str, **changes: Any) -> MutationResult:
        return self._apply(self.tasks, mutators.update_task, task_id, **changes)

    def delete_task(self, task_id: str) -> MutationResult:
        return self._apply(self.tasks, mutators.delete_task, task_id)

    def move_task(self, task_id: str, column: str) -> MutationResult:
        return self._apply(self.tasks, mutators.move_task, task_id, column)

    def add_priority(self, text: str = "New priority") -> MutationResult:
        return self._apply(self.priorities, mutators.add_priority, text, now=self._stamp())

    def toggle_priority(self, priority_id: str) -> MutationResult:
        return self._apply(self.priorities, mutators.toggle_priority, priority_id)

    def edit_priority(self, priority_id: str, text: str) -> MutationResult:
        return self._apply(self.priorities, mutators.edit_priority, priority_id, text)

    def delete_priority(self, priority_id: str) -> MutationResult:
        return self._apply(self.priorities, mutators.delete_priority, priority_id)

    def add_cost(self, label: str, amount: Any, currency: str = "€", period: str = "mo") -> MutationResult:
        return self._apply(self.costs, mutators.add_cost, label, amount, currency, period, now=self._stamp())

    def remove_cost(self, cost_id: str) -> MutationResult:
        return self._apply(self.costs, mutators.remove_cost, cost_id)

    def add_event(self, title: str, when_iso: str, location: str | None = None) -> MutationResult:
        return self._apply(self.calendar, mutators.add_event, title, when_iso, location, now=self._stamp())

    def remove_event(self, event_id: str) -> MutationResult:
        return self._apply(self.calendar, mutators.remove_event, event_id)

    def add_client(self, name: str, mrr: Any, status: str = "active", start_iso: str | None = None) -> MutationResult:
        return self._apply(self.clients, mutators.add_client, name, mrr, status, start_iso, now=self._stamp())

    def update_client(self, client_id: str, **changes: Any) -> MutationResult:
        return self._apply(self.clients, mutators.update_client, client_id, **changes)

    def remove_client(self, client_id: str) -> MutationResult:
        return self._apply(self.clients, mutators.remove_client, client_id)

    def set_agent_status(self, agent_id: str, status: str) -> MutationResult:
        return self._apply(self.agents, mutators.set_agent_status, agent_id, status)

    def send_task(self, agent_id: str, text: str) -> MutationResult:
        """Dispatch a task to an agent; it returns online after ``dispatch_delay``."""
        result = self._apply(self.agents, mutators.dispatch_agent_task, agent_id, text, now=self._stamp())
        if result.applied:
            self.scheduler.call_later(self.dispatch_delay, lambda: self._finish_agent_task(agent_id))
        return result

    def _finish_agent_task(self, agent_id: str) -> None:
        self._apply(self.agents, mutators.finish_agent_task, agent_id)

    def record_decision(
        self, question: str, summary: str, consulted: tuple[str, ...] | list[str] = ()
    ) -> MutationResult:
        return self._apply(self.decisions, mutators.record_decision, question, summary, consulted, now=self._stamp())

    def find_agent(self, ref: str) -> Agent | None:
        """Look up an agent by id or case-insensitive name."""
        for agent in self.agents.value:
            if agent.id == ref or agent.name.lower() == ref.lower():
                return agent
        return None

    # Settings

    def set_goal(
        self, name: str | None = None, goal_percent: Any = None, goal_date_iso: str | None = None
    ) -> MutationResult:
        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if goal_percent is not None:
            value = mutators.parse_amount(goal_percent)
            if value is None:
                return rejected(f"goal percent {goal_percent!r} is not a number")
            changes["goal_percent"] = int(value)
        if goal_date_iso is not None:
            try:
                date.fromisoformat(goal_date_iso)
            except ValueError:
                return rejected(f"invalid goal date {goal_date_iso!r}")
            changes["goal_date_iso"] = goal_date_iso
        goal = self.goal.replace(lambda previous: replace(previous, **changes) if changes else previous)
        return mutators.applied(goal)

    def set_notes(self, text: str) -> None:
        self.notes.replace(text)

    def set_tab(self, tab: str) -> MutationResult:
        if tab not in TAB_KEYS:
            return rejected(f"unknown tab {tab!r}")
        self.tab.replace(tab)
        return mutators.applied(tab)

    def set_revenue_goal(self, value: Any) -> MutationResult:
        amount = mutators.parse_amount(value)
        if amount is None:
            return rejected(f"revenue goal {value!r} is not a number")
        goal = self.revenue_goal.replace(max(0.0, amount))
        return mutators.applied(goal)

    # Derived views

    @property
    def now(self) -> datetime:
        return self.clock.now

    @property
    def kanban(self) -> dict[str, tuple[Task, ...]]:
        return self._cache.get("kanban", aggregates.kanban_columns, self.tasks.value)

    @property
    def monthly_cost_total(self) -> float:
        return self._cache.get("monthly_cost_total", aggregates.monthly_cost_total, self.costs.value)

    @property
    def cost_currency(self) -> str:
        return aggregates.cost_currency_label(self.costs.value)

    @property
    def tasks_today(self) -> int:
        return self._cache.get("tasks_today", aggregates.tasks_today_count, self.tasks.value, self.now)

    @property
    def active_projects(self) -> int:
        return self._cache.get("active_projects", aggregates.active_projects_count, self.tasks.value)

    @property
    def days_to_goal(self) -> int:
        return self._cache.get("days_to_goal", _days_to_goal, self.goal.value, self.now)

    @property
    def goal_progress(self) -> int:
        return aggregates.goal_progress(self.goal.value)

    @property
    def greeting(self) -> str:
        return aggregates.greeting_for(self.now)

    @property
    def mrr(self) -> float:
        return self._cache.get("mrr", aggregates.mrr, self.clients.value)

    @property
    def revenue_series(self) -> tuple[aggregates.RevenueBucket, ...]:
        return self._cache.get("revenue_series", aggregates.revenue_series, self.clients.value, self.now)

    @property
    def revenue_progress(self) -> float:
        return aggregates.revenue_progress(self.mrr, self.revenue_goal.value)

    @property
    def revenue_gap(self) -> float:
        return aggregates.revenue_gap(self.mrr, self.revenue_goal.value)

    @property
    def growth_needed(self) -> float | None:
        return aggregates.growth_needed(self.mrr, self.revenue_goal.value)

    @property
    def upcoming_events(self) -> tuple[CalendarItem, ...]:
        return self._cache.get("upcoming_events", aggregates.upcoming_events, self.calendar.value, self.now)

    def snapshot(self) -> dict[str, Any]:
        """All derived views at the current clock reading."""
        return {
            "now": self.now.isoformat(timespec="seconds"),
            "greeting": self.greeting,
            "owner": self.goal.value.name,
            "goal_progress": self.goal_progress,
            "days_to_goal": self.days_to_goal,
            "tasks_today": self.tasks_today,
            "active_projects": self.active_projects,
            "kanban": {column: len(tasks) for column, tasks in self.kanban.items()},
            "monthly_cost_total": self.monthly_cost_total,
            "cost_currency": self.cost_currency,
            "mrr": self.mrr,
            "revenue_goal": self.revenue_goal.value,
            "revenue_progress": self.revenue_progress,
            "revenue_gap": self.revenue_gap,
            "growth_needed": self.growth_needed,
            "revenue_series": [(b.label, b.total) for b in self.revenue_series],
            "upcoming_events": len(self.upcoming_events),
        }
