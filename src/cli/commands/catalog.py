"""Catalog store commands: create, seed from YAML, inspect."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.config import load_yaml
from cli.utils import config_path_from, get_components, handle_errors, run
from recommender.errors import InvalidRequestError

console = Console()


@click.group()
def catalog():
    """Manage the skills/paths/mentors catalog."""
    pass


@catalog.command("init")
@click.pass_context
@handle_errors
def catalog_init(ctx: click.Context):
    """Create the catalog database (tables are created on first open)."""
    c = get_components(config_path_from(ctx))
    console.print(f"[green]✓[/] Catalog ready: {c['config_model'].paths.db}")


@catalog.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
@handle_errors
def catalog_import(ctx: click.Context, file: Path):
    """Load skills, roles, users, paths, mentors and progress from a YAML file."""
    c = get_components(config_path_from(ctx))
    data = load_yaml(file)

    try:
        with console.status("Importing catalog..."):
            counts = run(c, c["store"].import_catalog, data)
    except KeyError as e:
        raise InvalidRequestError(f"Catalog record in {file.name} is missing field {e}") from e

    table = Table(title=f"Imported {file.name}", show_header=True)
    table.add_column("Section", style="cyan")
    table.add_column("Records", justify="right", style="green")
    for section, n in counts.items():
        table.add_row(section, str(n))
    console.print(table)


@catalog.command("stats")
@click.pass_context
@handle_errors
def catalog_stats(ctx: click.Context):
    """Show row counts per catalog table."""
    c = get_components(config_path_from(ctx))
    stats = run(c, c["store"].stats)

    table = Table(title="Catalog", show_header=True)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right")
    for name, n in stats.items():
        table.add_row(name, str(n))
    console.print(table)
