"""Cost and revenue commands for mission control CLI."""

from typing import Literal

from cyclopts import App

from mission_control.output import money, report, resolve

cost_app = App(name="cost", help="Track recurring costs")
client_app = App(name="client", help="Track clients and recurring revenue")

Status = Literal["active", "pending", "churned"]


@cost_app.command(name="add")
def add_cost(label: str, amount: str, currency: str = "€", period: Literal["mo", "yr"] = "mo") -> None:
    """Add a recurring cost."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.add_cost(label, amount, currency, period)
        report(result, f"Added cost {result.entity.id}" if result.applied else "")


@cost_app.command(name="remove")
def remove_cost(cost_id: str) -> None:
    """Remove a cost."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        report(dashboard.remove_cost(resolve(dashboard.costs.value, cost_id)), "Cost removed")


@cost_app.command(name="list")
def list_costs() -> None:
    """List costs and the monthly total."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        for item in dashboard.costs.value:
            print(f"{item.id}: {item.label}  {money(item.amount)} {item.currency}/{item.period}")
        print(f"Monthly total: {money(dashboard.monthly_cost_total)} {dashboard.cost_currency}/mo")


@client_app.command(name="add")
def add_client(name: str, mrr: str, status: Status = "active", start: str | None = None) -> None:
    """Add a client.

    Args:
        name: Client name.
        mrr: Monthly recurring revenue.
        status: Client status.
        start: Start date (YYYY-MM-DD), defaults to today.
    """
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.add_client(name, mrr, status, start)
        report(result, f"Added client {result.entity.id}" if result.applied else "")


@client_app.command(name="update")
def update_client(
    client_id: str,
    name: str | None = None,
    mrr: str | None = None,
    status: Status | None = None,
    start: str | None = None,
) -> None:
    """Update a client."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        client_id = resolve(dashboard.clients.value, client_id)
        result = dashboard.update_client(client_id, name=name, mrr=mrr, status=status, start_iso=start)
        report(result, f"Updated client {client_id}")


@client_app.command(name="remove")
def remove_client(client_id: str) -> None:
    """Remove a client."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        report(dashboard.remove_client(resolve(dashboard.clients.value, client_id)), "Client removed")


@client_app.command(name="list")
def list_clients() -> None:
    """List clients with revenue totals."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        clients = dashboard.clients.value
        if not clients:
            print("No clients yet")
        for client in clients:
            since = client.start_iso
            print(f"{client.id}: {client.name}  {money(client.mrr)}€/mo • {client.status} • since {since}")
        print()
        goal_text = money(dashboard.revenue_goal.value)
        print(f"MRR: {money(dashboard.mrr)}€ ({dashboard.revenue_progress:.1f}% of {goal_text}€)")
        print(f"Gap: {money(dashboard.revenue_gap)}€/mo")
        growth = dashboard.growth_needed
        print(f"Growth needed: {'—' if growth is None else f'{growth:.1f}%'}")


@client_app.command
def goal(amount: str) -> None:
    """Set the monthly revenue goal."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        result = dashboard.set_revenue_goal(amount)
        report(result, f"Revenue goal: {money(dashboard.revenue_goal.value)}€/mo")


@client_app.command
def series() -> None:
    """Show revenue for the trailing six months."""
    from mission_control.cli import open_dashboard

    with open_dashboard() as dashboard:
        buckets = dashboard.revenue_series
        peak = max([1.0] + [b.total for b in buckets])
        for bucket in buckets:
            bar = "█" * round(bucket.total / peak * 30)
            print(f"{bucket.label} {bucket.key}  {bar} {money(bucket.total)}€")
