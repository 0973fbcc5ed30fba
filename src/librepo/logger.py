"""
Logging setup for librepo.

Library modules only call :func:`get_logger` and emit structured events such
as ``library_fetched`` or ``contribution_phase``. Entry points call
:func:`configure_logging` once with the configured level and, optionally, a
log file; structlog events then flow through the standard logging handlers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import structlog
from structlog.stdlib import BoundLogger, ProcessorFormatter
from structlog.typing import Processor

_PRE_CHAIN: tuple[Processor, ...] = (
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
)


def resolve_level(level: Union[int, str]) -> int:
    """Turn ``"debug"``/``"INFO"``/``20`` into a logging level, defaulting to WARNING."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    log_file: Optional[Path] = None,
    enable_console: bool = True,
) -> None:
    """
    Route structlog events through a single root handler.

    Parameters
    ----------
    level:
        Level name or number; unknown names fall back to WARNING.
    log_file:
        When set, events are written to this file (truncated) instead of stderr.
    enable_console:
        When False and no ``log_file`` is given, events are discarded.
    """
    min_level = resolve_level(level)
    structlog.configure(
        processors=_PRE_CHAIN + (ProcessorFormatter.wrap_for_formatter,),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.captureWarnings(True)

    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    elif enable_console:
        handler = logging.StreamHandler()
    else:
        handler = logging.NullHandler()
    handler.setFormatter(
        ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=_PRE_CHAIN,
        )
    )
    logging.basicConfig(level=min_level, handlers=[handler], force=True)


def get_logger(name: Optional[str] = None) -> BoundLogger:
    return structlog.get_logger(name)
