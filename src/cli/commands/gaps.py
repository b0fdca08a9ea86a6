"""Skill gap commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import config_path_from, get_components, handle_errors, run
from recommender.errors import InvalidRequestError

console = Console()

PRIORITY_STYLE = {"HIGH": "red", "MEDIUM": "yellow", "LOW": "dim"}


def parse_skill_targets(values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated NAME=LEVEL options."""
    targets = {}
    for raw in values:
        name, sep, level = raw.rpartition("=")
        if not sep or not name.strip() or not level.strip():
            raise InvalidRequestError(f"Expected NAME=LEVEL, got {raw!r}")
        targets[name.strip()] = level.strip()
    return targets


@click.group()
def gaps():
    """Skill gap analysis for a user or a cohort."""
    pass


@gaps.command("analyze")
@click.argument("user_id")
@click.argument("role", required=False)
@click.option("-s", "--skill", "skills", multiple=True, help="Extra target as NAME=LEVEL")
@click.pass_context
@handle_errors
def gaps_analyze(ctx: click.Context, user_id: str, role: str | None, skills: tuple[str, ...]):
    """Rank USER_ID's gaps against ROLE's skill profile."""
    c = get_components(config_path_from(ctx))
    report = run(
        c, c["service"].analyze_skill_gap, user_id, role=role, target_skills=parse_skill_targets(skills)
    )

    if not report.gaps:
        console.print(f"[green]No gaps:[/] {user_id} meets every target{f' for {role}' if role else ''}.")
        return

    table = Table(title=f"Skill gaps: {user_id}" + (f" → {role}" if role else ""), show_header=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Current")
    table.add_column("Required")
    table.add_column("Gap", justify="right")
    table.add_column("Demand", justify="right")
    table.add_column("Priority")
    table.add_column("Hours", justify="right")

    for g in report.gaps:
        style = PRIORITY_STYLE[g.priority]
        table.add_row(
            g.skill_name,
            str(g.current_level) if g.current_level else "[dim]none[/]",
            str(g.required_level),
            str(g.gap_size),
            f"{g.market_demand:.2f}",
            f"[{style}]{g.priority}[/]",
            str(g.estimated_learning_hours),
        )
    console.print(table)
    console.print(f"Estimated time to fill: [bold]{report.estimated_time_to_fill}h[/]")


@gaps.command("cohort")
@click.argument("role")
@click.argument("user_ids", nargs=-1, required=True)
@click.pass_context
@handle_errors
def gaps_cohort(ctx: click.Context, role: str, user_ids: tuple[str, ...]):
    """Coverage of ROLE's skills across USER_IDS."""
    c = get_components(config_path_from(ctx))
    report = run(c, c["service"].cohort_gap_report, list(user_ids), role=role)

    table = Table(title=f"{role}: {report.user_count} users", show_header=True)
    table.add_column("Skill", style="cyan")
    table.add_column("Required")
    table.add_column("Coverage", justify="right")
    table.add_column("At target", justify="right")
    table.add_column("Avg level", justify="right")

    for s in report.skills:
        table.add_row(
            s.skill_name,
            str(s.required_level),
            f"{s.coverage:.0%}",
            f"{s.users_meeting_target}/{report.user_count}",
            f"{s.average_proficiency:.2f}" if s.users_with_skill else "-",
        )
    console.print(table)
