"""structlog setup for the skillpath CLI, with learner identifiers scrubbed."""

import logging
import re
import sys

import structlog

# Learner ids are often e-mails; catalog db paths carry the local account name
_LEARNER_PATTERNS = [
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "REDACTED@email"),
    (re.compile(r"(?:/home|/Users)/[^/\s]+"), "~"),
]


def _scrub(value: str) -> str:
    for pattern, replacement in _LEARNER_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def _redact_sensitive(_, __, event_dict: dict) -> dict:
    """Replace e-mail addresses and home directories in string and list values."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _scrub(value)
        elif isinstance(value, list):
            event_dict[key] = [_scrub(v) if isinstance(v, str) else v for v in value]
    return event_dict


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_sensitive,
    ]


def setup_logging(json_mode: bool = False, level: str = "WARNING") -> None:
    """Route structlog and stdlib records through one stderr handler.

    Args:
        json_mode: One JSON object per line instead of the colored console format.
        level: Root log level name; unknown names fall back to WARNING.
    """
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
