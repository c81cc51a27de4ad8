"""procuretrack CLI.

Commands:
- init: Initialize database schema
- serve: Run the HTTP API
- coherence list|order|project: Print a coherence report
- stats: Show project procurement statistics
"""

from __future__ import annotations

import asyncio
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import func, select

from procuretrack.coherence.repository import CoherenceRepository
from procuretrack.config import get_config
from procuretrack.core.logging import configure_logging
from procuretrack.db.connection import close_db, get_session, init_db
from procuretrack.db.models import (
    EquipmentListModel,
    ListItemModel,
    OrderItemModel,
    OrderModel,
    PlannedGroupModel,
    PlannedItemModel,
)
from procuretrack.errors import ProcurementError
from procuretrack.models import CoherenceLevel, CoherenceReport

app = typer.Typer(
    name="procuretrack",
    help="procuretrack - Equipment procurement lifecycle tracking",
    no_args_is_help=True,
)
coherence_cli = typer.Typer(help="Coherence reports", no_args_is_help=True)
app.add_typer(coherence_cli, name="coherence")

console = Console()

LEVEL_STYLES = {
    CoherenceLevel.OK: "green",
    CoherenceLevel.WARNING: "yellow",
    CoherenceLevel.ATTENTION: "red",
}


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging verbosity"),
):
    """Equipment procurement lifecycle tracking."""
    configure_logging(level=log_level, json_logs=False)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    async def _init():
        try:
            await init_db(drop=drop)
        finally:
            await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("procuretrack.web.app:app", host=host, port=port, reload=reload, workers=1)


def _print_report(report: CoherenceReport) -> None:
    style = LEVEL_STYLES[report.level]
    console.print(
        f"[bold]{report.scope.capitalize()} coherence:[/bold] {report.scope_id} "
        f"[{style}]{report.score}% ({report.level.value})[/{style}]"
    )

    table = Table(title="Items" if report.items else "Orders")
    if report.items:
        table.add_column("Code", style="cyan")
        table.add_column("Description")
        table.add_column("Planned", justify="right")
        table.add_column("Ordered", justify="right")
        table.add_column("Unit price", justify="right")
        table.add_column("Verified", justify="center")
        table.add_column("Coherent", justify="center")
        for item in report.items:
            table.add_row(
                item.code,
                item.description,
                str(item.planned_quantity),
                str(item.ordered_quantity),
                str(item.ordered_unit_price if item.ordered_unit_price is not None else item.best_unit_price),
                "✓" if item.verified else "",
                "✓" if item.coherent else "[red]✗[/red]",
            )
    else:
        table.add_column("Order", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Level")
        for child in report.children:
            table.add_row(str(child.scope_id), str(child.score), child.level.value)
    console.print(table)

    alerts = report.alerts.model_dump(by_alias=True)
    raised = [name for name, value in alerts.items() if value]
    if raised:
        console.print(f"[yellow]Alerts:[/yellow] {', '.join(raised)}")


def _run_report(scope: str, entity_id: UUID) -> None:
    async def _report():
        try:
            async with get_session() as session:
                repository = CoherenceRepository(session)
                if scope == "list":
                    return await repository.list_report(entity_id)
                if scope == "order":
                    return await repository.order_report(entity_id)
                return await repository.project_report(entity_id)
        finally:
            await close_db()

    try:
        report = asyncio.run(_report())
    except ProcurementError as exc:
        console.print(f"[red]{exc.code}:[/red] {exc.message}")
        raise typer.Exit(code=1) from exc
    _print_report(report)


@coherence_cli.command("list")
def coherence_list(list_id: UUID = typer.Argument(..., help="Equipment list ID")):
    """Coherence of an equipment list."""
    _run_report("list", list_id)


@coherence_cli.command("order")
def coherence_order(order_id: UUID = typer.Argument(..., help="Order ID")):
    """Coherence of a purchase order."""
    _run_report("order", order_id)


@coherence_cli.command("project")
def coherence_project(project_id: UUID = typer.Argument(..., help="Project ID")):
    """Coherence of all orders in a project."""
    _run_report("project", project_id)


@app.command()
def stats(project_id: UUID = typer.Argument(..., help="Project ID")):
    """Show project procurement statistics."""
    console.print(f"[bold]Project Statistics:[/bold] {project_id}")

    async def _stats():
        try:
            async with get_session() as session:
                planned_rows = await session.execute(
                    select(PlannedItemModel.status, func.count(PlannedItemModel.id))
                    .join(PlannedGroupModel, PlannedGroupModel.id == PlannedItemModel.group_id)
                    .where(PlannedGroupModel.project_id == project_id)
                    .group_by(PlannedItemModel.status)
                )
                lists_count = await session.scalar(
                    select(func.count(EquipmentListModel.id)).where(EquipmentListModel.project_id == project_id)
                )
                items_count = await session.scalar(
                    select(func.count(ListItemModel.id))
                    .join(EquipmentListModel, EquipmentListModel.id == ListItemModel.list_id)
                    .where(EquipmentListModel.project_id == project_id)
                )
                orders_count = await session.scalar(
                    select(func.count(OrderModel.id)).where(OrderModel.project_id == project_id)
                )
                totals = await session.execute(
                    select(
                        func.coalesce(func.sum(OrderItemModel.total_cost), 0),
                        func.coalesce(func.sum(OrderItemModel.delivered_quantity), 0),
                    )
                    .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
                    .where(OrderModel.project_id == project_id)
                )
                return dict(planned_rows.all()), lists_count, items_count, orders_count, totals.one()
        finally:
            await close_db()

    planned, lists_count, items_count, orders_count, (ordered_cost, delivered_qty) = asyncio.run(_stats())

    table = Table(title="Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="green")

    for status, count in sorted(planned.items(), key=lambda row: row[0].value):
        table.add_row(f"Planned items ({status.value})", str(count))
    table.add_row("Equipment lists", str(lists_count or 0))
    table.add_row("List items", str(items_count or 0))
    table.add_row("Orders", str(orders_count or 0))
    table.add_row("Ordered cost", str(ordered_cost))
    table.add_row("Delivered quantity", str(delivered_qty))

    console.print(table)


if __name__ == "__main__":
    app()
