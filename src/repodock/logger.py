"""
Logging setup shared by the CLI and the API server.

structlog is bridged into the standard logging module so uvicorn and library
records go through the same renderer. The server can emit JSON lines
(``log_format = "json"``); the CLI keeps console output or a log file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger, ProcessorFormatter
from structlog.typing import Processor

from .settings import settings

_PRE_CHAIN: tuple[Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
)


def _configure_structlog(min_level: int) -> None:
    structlog.configure(
        processors=_PRE_CHAIN + (ProcessorFormatter.wrap_for_formatter,),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _renderer(json_output: bool) -> Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _build_formatter(json_output: bool = False) -> ProcessorFormatter:
    return ProcessorFormatter(processor=_renderer(json_output), foreign_pre_chain=_PRE_CHAIN)


def configure_logging(
    level: Optional[int] = None,
    enable_console: bool = True,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure global logging.

    Parameters
    ----------
    level:
        Root logging level. Defaults to ``settings.log_level``.
    enable_console:
        When False, suppress log emission to stderr.
    json_output:
        Render records as JSON lines. Defaults to ``settings.log_format == "json"``.
    """
    if level is None:
        level = logging.getLevelName(settings.log_level.upper())
    if json_output is None:
        json_output = settings.log_format == "json"
    _configure_structlog(level)
    logging.captureWarnings(True)

    if enable_console:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_build_formatter(json_output))
    else:
        handler = logging.NullHandler()

    logging.basicConfig(level=level, handlers=[handler], force=True)


def get_logger(name: Optional[str] = None) -> BoundLogger:
    return structlog.get_logger(name)


def redirect_logging_to_file(path: Path) -> None:
    """Send all log records to ``path`` instead of the console."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(_build_formatter())
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    _configure_structlog(logging.INFO)
