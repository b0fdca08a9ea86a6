"""Mentor matching commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import config_path_from, get_components, handle_errors, run
from shared_types import MentorshipStyle, ProficiencyLevel

console = Console()


@click.group()
def mentors():
    """Find compatible mentors."""
    pass


@mentors.command("match")
@click.option("-s", "--skill", "skills", multiple=True, required=True, help="Skill to learn (repeatable)")
@click.option("--mentee", "mentee_id", help="Mentee user id (excluded from pool, level derived)")
@click.option("--level", type=click.Choice([p.value for p in ProficiencyLevel]), help="Mentee experience level")
@click.option("--industry", help="Required mentor industry")
@click.option("--style", type=click.Choice([s.value for s in MentorshipStyle]), help="Preferred style")
@click.option("--slot", "slots", multiple=True, help="Preferred time slot (repeatable)")
@click.option("--min-score", default=0.6, show_default=True, help="Minimum compatibility 0-1")
@click.option("-n", "--limit", default=10, show_default=True, help="Max mentors to show")
@click.pass_context
@handle_errors
def mentors_match(
    ctx: click.Context,
    skills: tuple[str, ...],
    mentee_id: str | None,
    level: str | None,
    industry: str | None,
    style: str | None,
    slots: tuple[str, ...],
    min_score: float,
    limit: int,
):
    """Rank mentors for the given skills."""
    c = get_components(config_path_from(ctx))
    request = {
        "mentee_id": mentee_id,
        "skills_to_learn": list(skills),
        "experience_level": level,
        "industry_preference": industry,
        "preferred_mentorship_style": style,
        "preferred_time_slots": list(slots),
        "min_compatibility_score": min_score,
        "max_results": limit,
    }
    matches = run(c, c["service"].match_mentors, request)

    if not matches:
        console.print("[yellow]No mentors above the compatibility threshold.[/]")
        return

    table = Table(title="Mentor matches", show_header=True)
    table.add_column("Mentor", style="cyan")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Shared skills")
    table.add_column("Rating", justify="right")
    table.add_column("Why", style="dim")

    for m in matches:
        profile = m.mentor_profile
        rating = f"{profile.average_rating:.1f} ({profile.total_reviews})" if profile.average_rating else "-"
        table.add_row(
            m.mentor_id,
            f"{m.compatibility_score:.2f}",
            ", ".join(m.shared_skills),
            rating,
            m.match_reasons[0] if m.match_reasons else "",
        )
    console.print(table)
