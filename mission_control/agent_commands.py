"""Agent and decision log commands for mission control CLI."""

from datetime import datetime
from typing import Literal

from cyclopts import App

from mission_control.output import report

agent_app = App(name="agent", help="Work with assistant agents")
decision_app = App(name="decision", help="Record decisions")


@agent_app.command(name="list")
def list_agents() -> None:
    """List agents and their status."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        for agent in dashboard.agents.value:
            seen = datetime.fromtimestamp(agent.last_active / 1000)
            print(f"{agent.name} ({agent.role}) - {agent.status} • {agent.model} • last active {seen:%d.%m %H:%M}")


@agent_app.command
def show(agent: str) -> None:
    """Show an agent's profile and recent activity."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        found = dashboard.find_agent(agent)
        if found is None:
            print(f"No agent named {agent}")
            return
        print(f"{found.name}: {found.role} [{found.status}]")
        print(found.description)
        if found.capabilities:
            print(f"Capabilities: {', '.join(found.capabilities)}")
        if found.perf_notes:
            print(f"Notes: {found.perf_notes}")
        for entry in found.activity[:10]:
            print(f"  {datetime.fromtimestamp(entry.ts / 1000):%d.%m %H:%M}  {entry.text}")


@agent_app.command
def send(agent: str, text: str, wait: bool = True) -> None:
    """Send a task to an agent.

    Args:
        agent: Agent name or id.
        text: Task description.
        wait: Wait for the agent to report back before exiting.
    """
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        found = dashboard.find_agent(agent)
        if found is None:
            print(f"No agent named {agent}")
            return
        if not report(dashboard.send_task(found.id, text), f"Sent task to {found.name}"):
            return
        if wait:
            dashboard.wait_for_pending(timeout=dashboard.dispatch_delay + 5)
            print(f"{found.name} is {dashboard.find_agent(found.id).status}")


@agent_app.command
def status(agent: str, value: Literal["online", "busy", "offline"]) -> None:
    """Set an agent's status."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        found = dashboard.find_agent(agent)
        if found is None:
            print(f"No agent named {agent}")
            return
        report(dashboard.set_agent_status(found.id, value), f"{found.name} is now {value}")


@decision_app.command(name="add")
def add_decision(question: str, summary: str, *consulted: str) -> None:
    """Record a decision and the agents consulted."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.record_decision(question, summary, consulted)
        report(result, f"Recorded decision {result.entity.id}" if result.applied else "")


@decision_app.command(name="list")
def list_decisions() -> None:
    """List recorded decisions, newest first."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        if not dashboard.decisions.value:
            print("No decisions yet")
            return
        for decision in dashboard.decisions.value:
            when = datetime.fromisoformat(decision.date_iso).astimezone()
            print(f"{when:%d.%m.%Y} {decision.question}")
            print(f"  {decision.summary}")
            print(f"  consulted: {', '.join(decision.consulted) or '—'}")
