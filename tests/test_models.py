"""Tests for data models."""

import json

import pytest

from mission_control.models import Agent, AgentActivity, Decision, Task, new_id, sample_agents


def test_task_defaults() -> None:
    """Test task creation with defaults."""
    task = Task(id="task_1", title="Write docs")
    assert task.description == ""
    assert task.priority == "medium"
    assert task.column == "backlog"


def test_task_from_dict_rejects_unknown_column() -> None:
    """Test that a stored task with an unknown column does not parse."""
    with pytest.raises(ValueError):
        Task.from_dict(
            {"id": "t", "title": "x", "description": "", "priority": "low", "column": "archived", "created_at": 1}
        )


def test_task_from_dict_missing_field() -> None:
    """Test that a stored task missing a required field does not parse."""
    with pytest.raises(KeyError):
        Task.from_dict({"id": "t", "title": "x"})


def test_agent_to_dict_is_json_ready() -> None:
    """Test agent serialization including nested activity."""
    agent = Agent(
        id="ag_1",
        name="Lando",
        role="Assistant",
        status="online",
        model="m",
        last_active=10,
        capabilities=("Code",),
        activity=(AgentActivity(id="aa_1", ts=5, text="Task: ship"),),
    )
    data = json.loads(json.dumps(agent.to_dict()))
    assert data["capabilities"] == ["Code"]
    assert data["activity"] == [{"id": "aa_1", "ts": 5, "text": "Task: ship"}]
    assert Agent.from_dict(data) == agent


def test_decision_consulted_is_tuple() -> None:
    """Test decision parsing keeps consulted names in order."""
    decision = Decision.from_dict(
        {"id": "d", "date_iso": "2026-03-15T10:00:00+00:00", "question": "q", "summary": "s", "consulted": ["A", "B"]}
    )
    assert decision.consulted == ("A", "B")


def test_new_id_is_unique_and_prefixed() -> None:
    """Test identifier generation."""
    ids = {new_id("task") for _ in range(500)}
    assert len(ids) == 500
    assert all(i.startswith("task_") for i in ids)


def test_sample_agents() -> None:
    """Test the seeded sample agents."""
    agents = sample_agents(now=1_000_000_000)
    assert [a.name for a in agents] == ["Lando", "Jiggy", "Teddy"]
    assert [a.status for a in agents] == ["online", "busy", "offline"]
    assert agents[0].last_active == 1_000_000_000
    assert len({a.id for a in agents}) == 3
