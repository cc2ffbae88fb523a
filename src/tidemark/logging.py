"""Structured logging for Tidemark.

Backed by structlog. Console output is the default; setting
``TIDEMARK_LOG_FORMAT=json`` switches to one JSON object per line, which is
what editors and wrappers embedding tidemark usually want.

Usage:
    from tidemark.logging import configure_logging, get_logger

    configure_logging()

    log = get_logger(__name__)
    log.bind(repo_root="/work/project").info("ghost_commit_created", id="3f2a")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]

LOG_FORMAT_ENV_VAR = "TIDEMARK_LOG_FORMAT"
LOG_LEVEL_ENV_VAR = "TIDEMARK_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

_VERBOSITY_LEVELS: dict[str, int] = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def level_for_verbosity(verbosity: str) -> int:
    """Map a config ``verbosity`` value to a stdlib logging level.

    Unknown values fall back to ``logging.WARNING``.
    """
    return _VERBOSITY_LEVELS.get(verbosity.lower(), logging.WARNING)


def _get_log_level() -> int:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def _is_json_output() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _structlog_processors(use_json: bool) -> list[Processor]:
    if use_json:
        return [
            *_shared_processors(),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [
        *_shared_processors(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def _stdlib_renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the previous handlers.

    Args:
        force_json: Emit JSON regardless of ``TIDEMARK_LOG_FORMAT``.
        level: Explicit log level. When None, ``TIDEMARK_LOG_LEVEL`` is
            consulted and INFO is used if it is unset.
    """
    use_json = force_json or _is_json_output()
    log_level = level if level is not None else _get_log_level()

    structlog.configure(
        processors=_structlog_processors(use_json),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _stdlib_renderer(use_json),
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )
    root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, normally called as ``get_logger(__name__)``."""
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind values (e.g. ``repo_root``) onto every subsequent log event.

    Uses structlog contextvars so the binding follows the current task
    across ``await`` points.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop everything bound with :func:`bind_context`."""
    structlog.contextvars.clear_contextvars()
