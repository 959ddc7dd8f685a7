"""Structured logging for threatwatch.

Detection code logs through :func:`get_logger`; events are snake_case
names with keyword context. :func:`setup_logging` routes structlog into
stdlib ``logging`` so the console and the optional rotating file share
one processor chain. Subjects are never logged raw: pass
``user_hash=hash_user_id(user_id)`` instead of the user id.
"""

from __future__ import annotations

import hashlib
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from threatwatch.config import get_settings

if TYPE_CHECKING:
    from threatwatch.config import Settings

# Applied to every event before it reaches a stdlib handler
_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
]


def setup_logging(settings: Settings | None = None) -> None:
    """Attach console (and optionally file) handlers and configure structlog.

    Args:
        settings: Logging options; defaults to :func:`get_settings`.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), level, _renderer(settings)))

    file_handler = _open_log_file(settings) if settings.log_to_file else None
    if file_handler is not None:
        root.addHandler(_handler(file_handler, level, structlog.processors.JSONRenderer()))

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _renderer(settings: Settings) -> structlog.types.Processor:
    # Colored console while developing, JSON lines everywhere else
    if settings.is_development:
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def _handler(
    handler: logging.Handler, level: int, renderer: structlog.types.Processor
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer]
        )
    )
    return handler


def _open_log_file(settings: Settings) -> RotatingFileHandler | None:
    """Open the rotating log file, or return None to stay console-only."""
    try:
        Path(settings.log_directory).mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            filename=settings.log_file_path,
            maxBytes=settings.log_file_max_bytes,
            backupCount=settings.log_file_backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Warning: file logging disabled: {e}", file=sys.stderr)
        return None


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def hash_user_id(user_id: str) -> str:
    """Stable pseudonym for a user id in log events."""
    return hashlib.sha256(user_id.encode("utf-8")).hexdigest()
