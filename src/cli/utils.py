"""Shared CLI utilities."""

import sys
from functools import wraps
from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console

from recommender.errors import (
    DependencyUnavailableError,
    GraphIntegrityError,
    InvalidRequestError,
    NotFoundError,
)

console = Console()
logger = structlog.get_logger()


def get_components(config_path: Optional[Path] = None):
    """Initialize store and service from config.

    Args:
        config_path: Explicit config file; None searches the standard locations.
    """
    from cli.config import load_config_model
    from cli.retry import retry_from_config
    from recommender.service import RecommenderService
    from recommender.store import SQLiteCatalogStore

    config_model = load_config_model(config_path)
    config = config_model.to_dict()
    with_retry = retry_from_config(config)

    store = with_retry(SQLiteCatalogStore)(config_model.paths.db)
    service = RecommenderService(
        store,
        gap_policy=config_model.gaps.to_policy(),
        match_weights=config_model.matching.to_weights(),
        match_policy=config_model.matching.to_policy(),
        path_policy=config_model.progress.to_policy(),
        recommendation_weights=config_model.recommendations.to_weights(config_model.gaps.top_n),
    )

    return {
        "config": config,
        "config_model": config_model,
        "store": store,
        "service": service,
        "retry": with_retry,
    }


def run(c: dict, fn, *args, **kwargs):
    """Call fn through the configured store retry."""
    return c["retry"](fn)(*args, **kwargs)


def handle_errors(func):
    """Map engine errors to a red message and exit code 1."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except NotFoundError as e:
            console.print(f"[red]Not found:[/] {e}")
        except InvalidRequestError as e:
            console.print(f"[red]Invalid request:[/] {e}")
            for err in e.errors:
                loc = ".".join(str(p) for p in err.get("loc", ()))
                console.print(f"  [dim]{loc}:[/] {err.get('msg', '')}")
        except GraphIntegrityError as e:
            console.print(f"[red]Catalog error:[/] {e}")
        except DependencyUnavailableError as e:
            console.print(f"[red]Store unavailable:[/] {e}")
        except ValueError as e:
            # Config validation / bad input files
            console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    return wrapper


def config_path_from(ctx: click.Context) -> Optional[Path]:
    obj = ctx.find_root().obj or {}
    return obj.get("config_path")
