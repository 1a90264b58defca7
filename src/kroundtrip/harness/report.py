"""Rich tables summarizing a run."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from kroundtrip.harness.result import RunResult


def _ms(value: float | None) -> str:
    return "-" if value is None else f"{value:,.2f}ms"


def generate_checks_table(result: RunResult) -> Table:
    table = Table(title=f"Checks (run {result.run_id})")
    table.add_column("Check", style="cyan")
    table.add_column("Passes", style="green")
    table.add_column("Fails", style="red")

    for name, stats in result.checks.items():
        mark = "[green]✓[/green]" if stats.ok else "[red]✗[/red]"
        table.add_row(f"{mark} {name}", f"{stats.passes:,}", f"{stats.fails:,}")
    return table


def generate_workers_table(result: RunResult) -> Table:
    table = Table(title="Workers")
    table.add_column("Worker", style="cyan")
    table.add_column("State", style="magenta")
    table.add_column("Produced", style="green")
    table.add_column("Consumed", style="yellow")
    table.add_column("Produce duration")
    table.add_column("Error", style="red")

    for outcome in result.workers:
        table.add_row(
            f"{outcome.index} [dim]({outcome.group_id})[/dim]",
            outcome.state.name,
            f"{outcome.messages_produced:,}",
            f"{outcome.messages_consumed:,}",
            _ms(outcome.produce_duration_ms),
            outcome.error or "",
        )

    table.add_section()
    table.add_row(
        "[bold]TOTAL[/bold]",
        "",
        f"[bold]{result.messages_produced:,}[/bold]",
        f"[bold]{result.messages_consumed:,}[/bold]",
        "",
        "",
    )
    return table


def generate_trend_table(result: RunResult) -> Table:
    trend = result.produce_duration
    summary = trend.summary()
    table = Table(title=f"{trend.name} ({trend.count} samples)")
    for column in summary:
        table.add_column(column)
    table.add_row(*(_ms(value) for value in summary.values()))
    return table


def print_report(result: RunResult, console: Console | None = None) -> None:
    console = console or Console()
    if result.fatal_error:
        console.print(f"[bold red]Run aborted: {result.fatal_error}[/bold red]")
    if result.workers:
        console.print(generate_workers_table(result))
    if result.checks:
        console.print(generate_checks_table(result))
    if result.produce_duration.count:
        console.print(generate_trend_table(result))
    for error in result.errors:
        console.print(f"[red]{error}[/red]")
    for error in result.teardown_errors:
        console.print(f"[yellow]teardown: {error}[/yellow]")

    if result.exit_code == 0:
        console.print(f"[bold green]All checks passed in {result.duration_seconds:.1f}s[/]")
    elif not result.aborted:
        console.print(f"[bold red]Run finished with failures in {result.duration_seconds:.1f}s[/]")
