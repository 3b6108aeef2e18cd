"""Typer CLI for PlanGate."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="plangate", help="PlanGate: usage-based plan downgrade gate")
console = Console()


def _load_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[bold red]Error:[/bold red] cannot read {path}: {e}")
        raise typer.Exit(2)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the PlanGate API server."""
    import uvicorn
    from plangate.app import create_app

    console.print(f"[bold green]Starting PlanGate on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def evaluate(
    event_file: Path = typer.Argument(..., help="Plan selection event JSON"),
):
    """Evaluate a plan selection event against the configured services."""
    from plangate.common.config import get_settings
    from plangate.common.logging import setup_logging
    from plangate.deps import close_clients, get_gate
    from plangate.gating.collaborators import CollectingEmitter
    from plangate.gating.schemas import PlanSelectionEvent

    setup_logging(get_settings().log_level)
    event = PlanSelectionEvent.model_validate(_load_json(event_file))

    async def _run():
        emitter = CollectingEmitter()
        try:
            evaluation = await get_gate().evaluate(event, emitter)
        finally:
            await close_clients()
        return evaluation, emitter

    evaluation, emitter = asyncio.run(_run())

    if not emitter.denied:
        console.print(f"[bold green]ALLOW[/bold green] ({evaluation.state.value})")
        return
    console.print(f"[bold red]DENY[/bold red] {emitter.summary}")
    for reason in emitter.reasons:
        console.print(f"  - {reason}")
    raise typer.Exit(1)


@app.command()
def resolve(
    entitlements_file: Path = typer.Argument(..., help="Entitlements API response JSON"),
    plan: str = typer.Option(..., "--plan", help="Requested plan code"),
    feature: str = typer.Option("", "--feature", help="Feature key (defaults to the tracked feature)"),
):
    """Resolve a feature's limit on a plan from a saved entitlements response (offline)."""
    from plangate.common.config import get_settings
    from plangate.entitlements.resolver import find_entitlement, resolve_plan_limit
    from plangate.entitlements.schemas import parse_entitlements

    feature = feature or get_settings().tracked_feature_key
    data = _load_json(entitlements_file)
    raw = data.get("entitlements", []) if isinstance(data, dict) else data
    entitlements = parse_entitlements(raw)
    try:
        limit = resolve_plan_limit(entitlements, feature, plan)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] malformed limit for {feature}: {e}")
        raise typer.Exit(2)

    table = Table(title=f"{feature} on {plan}")
    table.add_column("Feature")
    table.add_column("Plans")
    table.add_column("Limit")
    ent = find_entitlement(entitlements, feature)
    plans = ", ".join(p.plan_code for p in ent.plans) if ent else "-"
    table.add_row(feature, plans, str(limit))
    console.print(table)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check PlanGate server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
