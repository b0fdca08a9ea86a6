"""CLI command modules."""

from .catalog import catalog
from .gaps import gaps
from .mentors import mentors
from .paths import paths
from .recommend import recommend

__all__ = [
    "catalog",
    "paths",
    "gaps",
    "mentors",
    "recommend",
]
