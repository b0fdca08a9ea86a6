"""skillpath command line entry point."""

import sys
from pathlib import Path

import click

from cli.commands import catalog, gaps, mentors, paths, recommend
from cli.config import load_config_model
from cli.logging_config import setup_logging
from cli.utils import console
from observability import log_run_summary


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ./skillpath.yaml or ~/.skillpath/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None):
    """skillpath - learning path, skill gap and mentor recommendations."""
    try:
        config = load_config_model(config_path)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)

    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=config.logging.json_output, level=level)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.call_on_close(log_run_summary)


cli.add_command(catalog)
cli.add_command(paths)
cli.add_command(gaps)
cli.add_command(mentors)
cli.add_command(recommend)


if __name__ == "__main__":
    cli()
