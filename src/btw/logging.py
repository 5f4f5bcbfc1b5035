"""Structured logging configuration for BTW.

Console output by default; JSON lines when ``BTW_LOG_FORMAT=json``.
The level is read from ``BTW_LOG_LEVEL`` (default ``WARNING`` so the CLI
stays quiet unless asked).

Usage:
    from btw.logging import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    logger.warning("state_update_failed", workflow_id="demo")
"""

from __future__ import annotations

import logging
import os
import sys

import structlog
from structlog.types import Processor

from .constants import ENV_LOG_FORMAT, ENV_LOG_LEVEL

__all__ = ["configure_logging", "get_logger"]

DEFAULT_LOG_LEVEL = "WARNING"


def _get_log_level() -> int:
    level_name = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.WARNING)


def _is_json_output() -> bool:
    return os.environ.get(ENV_LOG_FORMAT, "").lower() == "json"


def _get_shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        force_json: Emit JSON regardless of ``BTW_LOG_FORMAT``.
        level: Override the level otherwise read from ``BTW_LOG_LEVEL``.
    """
    use_json = force_json or _is_json_output()
    log_level = level if level is not None else _get_log_level()

    renderer: Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *_get_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=_get_shared_processors(),
        ),
    )

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger backed by the stdlib logger ``name``.

    Until ``configure_logging()`` runs, events go through stdlib logging
    with no handler attached, so library callers see nothing below WARNING.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
