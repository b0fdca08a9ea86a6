"""Learning path progress commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import config_path_from, get_components, handle_errors, run

console = Console()


def _bar(pct: float) -> str:
    filled = int(pct // 10)
    return "[green]" + "█" * filled + "[/]" + "[dim]" + "░" * (10 - filled) + "[/]"


@click.group()
def paths():
    """Learning path progress and analytics."""
    pass


@paths.command("progress")
@click.argument("user_id")
@click.argument("path_id")
@click.option("--json", "as_json", is_flag=True, help="Print the progress view as JSON")
@click.pass_context
@handle_errors
def paths_progress(ctx: click.Context, user_id: str, path_id: str, as_json: bool):
    """Show completion, status and next step for USER_ID on PATH_ID."""
    c = get_components(config_path_from(ctx))
    view = run(c, c["service"].resolve_path_progress, user_id, path_id)

    if as_json:
        click.echo(view.model_dump_json(indent=2))
        return

    summary = run(c, c["service"].summarize_enrollment, user_id, path_id)
    console.print(f"\n[bold]{path_id}[/] [dim]({user_id})[/]")
    console.print(f"Status: [cyan]{view.status}[/]")
    console.print(
        f"Required steps: {_bar(view.percent_complete)} {view.percent_complete:.2f}% "
        f"({view.completed_required_count}/{view.total_required_count})"
    )
    console.print(
        f"All steps: {summary.completed_steps}/{summary.total_steps} "
        f"| Weighted progress: {summary.progress_percentage:.2f}% "
        f"| Time spent: {summary.time_spent_hours:.1f}h"
    )
    if view.next_step:
        tag = "" if view.next_step.is_required else " [dim](optional)[/]"
        console.print(f"Next: [green]{view.next_step.title or view.next_step.id}[/]{tag}")
    elif view.is_complete:
        console.print("[green]Path complete.[/]")
    else:
        console.print("[yellow]No unlocked steps remaining.[/]")


@paths.command("analytics")
@click.argument("user_id")
@click.argument("path_id")
@click.pass_context
@handle_errors
def paths_analytics(ctx: click.Context, user_id: str, path_id: str):
    """Time, velocity and struggle/strength breakdown for USER_ID on PATH_ID."""
    c = get_components(config_path_from(ctx))
    a = run(c, c["service"].path_analytics, user_id, path_id)

    table = Table(title=f"{path_id} analytics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Completion", f"{a.percent_complete:.2f}%")
    table.add_row("Steps done", f"{a.completed_steps}/{a.total_steps}")
    table.add_row("Time spent", f"{a.time_spent_hours:.1f}h")
    table.add_row("Avg per completed step", f"{a.average_step_minutes:.0f} min")
    table.add_row("Velocity", f"{a.learning_velocity:.2f} steps/week")
    table.add_row(
        "Est. completion",
        a.estimated_completion.strftime("%Y-%m-%d") if a.estimated_completion else "unknown",
    )
    table.add_row("Struggling", ", ".join(a.struggling_steps) or "-")
    table.add_row("Strong", ", ".join(a.strong_steps) or "-")
    console.print(table)
