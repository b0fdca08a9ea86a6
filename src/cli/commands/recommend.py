"""Learning path recommendation command."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import config_path_from, get_components, handle_errors, run
from shared_types import DifficultyLevel, PathCategory

console = Console()


@click.command()
@click.argument("user_id")
@click.option("-r", "--role", help="Target role (uses its skill profile)")
@click.option("-s", "--skill", "skills", multiple=True, help="Target skill (repeatable)")
@click.option("--category", type=click.Choice([c.value for c in PathCategory]), help="Path category")
@click.option("--difficulty", type=click.Choice([d.value for d in DifficultyLevel]), help="Path difficulty")
@click.option("--max-weeks", type=int, help="Longest acceptable path duration")
@click.option("-n", "--limit", type=int, help="Max paths to show")
@click.option("--include-completed", is_flag=True, help="Keep paths the user already finished")
@click.pass_context
@handle_errors
def recommend(
    ctx: click.Context,
    user_id: str,
    role: str | None,
    skills: tuple[str, ...],
    category: str | None,
    difficulty: str | None,
    max_weeks: int | None,
    limit: int | None,
    include_completed: bool,
):
    """Recommend learning paths that close USER_ID's top skill gaps."""
    c = get_components(config_path_from(ctx))
    request = {
        "target_role": role,
        "skills": list(skills),
        "category": category,
        "difficulty": difficulty,
        "max_duration_weeks": max_weeks,
        "limit": limit,
        "include_completed": include_completed,
    }
    ranked = run(c, c["service"].recommend_paths, user_id, request)

    if ranked.gaps:
        console.print(
            "Top gaps: " + ", ".join(f"[cyan]{g.skill_name}[/] (+{g.gap_size})" for g in ranked.gaps)
        )
    if not ranked.recommendations:
        console.print("[yellow]No matching learning paths.[/]")
        return

    table = Table(title=f"Recommended paths for {user_id}", show_header=True)
    table.add_column("Path", style="cyan")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Covers")
    table.add_column("Weeks", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Next step", style="dim")

    for r in ranked.recommendations:
        table.add_row(
            f"{r.title} [dim]({r.path_id})[/]",
            f"{r.match_score:.2f}",
            ", ".join(r.covered_gap_skills) or "-",
            str(r.estimated_duration_weeks) if r.estimated_duration_weeks is not None else "?",
            f"{r.percent_complete:.0f}%" if r.percent_complete is not None else "-",
            r.next_step.title or r.next_step.id if r.next_step else "",
        )
    console.print(table)

    for r in ranked.recommendations:
        if r.reasons:
            console.print(f"\n[cyan]{r.path_id}[/]")
            for reason in r.reasons:
                console.print(f"  - {reason}")
