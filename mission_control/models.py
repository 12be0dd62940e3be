"""Data models for mission control."""

import random
import time
from dataclasses import asdict, dataclass, field
from typing import Any

ACTIVITY_LIMIT = 60
AGENT_ACTIVITY_LIMIT = 50

TASK_PRIORITIES = ("high", "medium", "low")
TASK_COLUMNS = ("backlog", "in_progress", "done")
COST_PERIODS = ("mo", "yr")
CLIENT_STATUSES = ("active", "pending", "churned")
AGENT_STATUSES = ("online", "busy", "offline")


def now_ms() -> int:
    """Current instant as integer epoch milliseconds."""
    return int(time.time() * 1000)


def new_id(prefix: str = "id") -> str:
    """Generate a process-unique identifier.

    Combines a random hex component with the hex millisecond timestamp.
    """
    return f"{prefix}_{random.getrandbits(52):x}_{now_ms():x}"


def _choice(value: Any, allowed: tuple[str, ...], name: str) -> str:
    if value not in allowed:
        raise ValueError(f"Invalid {name}: {value!r}")
    return value


@dataclass(frozen=True)
class GoalSettings:
    """Owner name and countdown goal shown on the dashboard."""

    name: str
    goal_percent: int
    goal_date_iso: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GoalSettings":
        return cls(
            name=str(data["name"]),
            goal_percent=int(data["goal_percent"]),
            goal_date_iso=str(data["goal_date_iso"]),
        )


@dataclass(frozen=True)
class Priority:
    """A checklist entry on the dashboard."""

    id: str
    text: str
    done: bool = False
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Priority":
        return cls(
            id=str(data["id"]),
            text=str(data["text"]),
            done=bool(data["done"]),
            created_at=int(data["created_at"]),
        )


@dataclass(frozen=True)
class ActivityItem:
    """One line of the activity log."""

    id: str
    ts: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivityItem":
        return cls(id=str(data["id"]), ts=int(data["ts"]), text=str(data["text"]))


@dataclass(frozen=True)
class Task:
    """A kanban card."""

    id: str
    title: str
    description: str = ""
    priority: str = "medium"
    column: str = "backlog"
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            description=str(data.get("description", "")),
            priority=_choice(data["priority"], TASK_PRIORITIES, "priority"),
            column=_choice(data["column"], TASK_COLUMNS, "column"),
            created_at=int(data["created_at"]),
        )


@dataclass(frozen=True)
class CostItem:
    """A recurring cost, billed monthly or yearly."""

    id: str
    label: str
    amount: float
    currency: str = "€"
    period: str = "mo"
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CostItem":
        return cls(
            id=str(data["id"]),
            label=str(data["label"]),
            amount=float(data["amount"]),
            currency=str(data["currency"]),
            period=_choice(data["period"], COST_PERIODS, "period"),
            created_at=int(data["created_at"]),
        )


@dataclass(frozen=True)
class CalendarItem:
    """A calendar event."""

    id: str
    title: str
    when_iso: str
    location: str | None = None
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CalendarItem":
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            when_iso=str(data["when_iso"]),
            location=data.get("location"),
            created_at=int(data["created_at"]),
        )


@dataclass(frozen=True)
class Client:
    """A paying (or prospective) client and its monthly recurring revenue."""

    id: str
    name: str
    mrr: float
    status: str = "active"
    start_iso: str = ""
    created_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Client":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            mrr=float(data["mrr"]),
            status=_choice(data["status"], CLIENT_STATUSES, "status"),
            start_iso=str(data["start_iso"]),
            created_at=int(data["created_at"]),
        )


@dataclass(frozen=True)
class AgentActivity:
    """One entry of an agent's own activity trail."""

    id: str
    ts: int
    text: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentActivity":
        return cls(id=str(data["id"]), ts=int(data["ts"]), text=str(data["text"]))


@dataclass(frozen=True)
class Agent:
    """An assistant agent that can be sent tasks."""

    id: str
    name: str
    role: str
    status: str
    model: str
    last_active: int
    description: str = ""
    capabilities: tuple[str, ...] = ()
    activity: tuple[AgentActivity, ...] = ()
    perf_notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["capabilities"] = list(self.capabilities)
        data["activity"] = [asdict(item) for item in self.activity]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Agent":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            role=str(data["role"]),
            status=_choice(data["status"], AGENT_STATUSES, "status"),
            model=str(data["model"]),
            last_active=int(data["last_active"]),
            description=str(data.get("description", "")),
            capabilities=tuple(str(c) for c in data.get("capabilities", [])),
            activity=tuple(AgentActivity.from_dict(a) for a in data.get("activity", [])),
            perf_notes=data.get("perf_notes"),
        )


@dataclass(frozen=True)
class Decision:
    """An audit note of a decision and which agents were consulted.

    ``consulted`` holds agent display names copied at write time, not ids.
    """

    id: str
    date_iso: str
    question: str
    summary: str
    consulted: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["consulted"] = list(self.consulted)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Decision":
        return cls(
            id=str(data["id"]),
            date_iso=str(data["date_iso"]),
            question=str(data["question"]),
            summary=str(data["summary"]),
            consulted=tuple(str(c) for c in data.get("consulted", [])),
        )


def sample_agents(now: int | None = None) -> tuple[Agent, ...]:
    """Agents seeded on first run."""
    now = now_ms() if now is None else now
    return (
        Agent(
            id=new_id("ag"),
            name="Lando",
            role="Strategic Tech Assistant",
            status="online",
            model="openai/gpt-5.2",
            last_active=now,
            description="Calm, precise, forward-looking assistant orchestrating work and code.",
            capabilities=("Code patches", "CLI orchestration", "Docs synthesis"),
            perf_notes="Strong on multi-step ops and quick patching.",
        ),
        Agent(
            id=new_id("ag"),
            name="Jiggy",
            role="Coding Agent",
            status="busy",
            model="openai/gpt-5.2-codex",
            last_active=now - 1000 * 60 * 8,
            description="Implements small, safe, incremental code changes.",
            capabilities=("Refactors", "Build/CI fixes", "Lint/type fixes"),
        ),
        Agent(
            id=new_id("ag"),
            name="Teddy",
            role="Research & Messaging",
            status="offline",
            model="google/gemini-flash",
            last_active=now - 1000 * 60 * 60,
            description="Concise web research, messaging workflows.",
            capabilities=("Web search", "Summaries", "Comms drafts"),
        ),
    )
