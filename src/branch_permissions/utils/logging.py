from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

import structlog
from loguru import logger as loguru_logger
from structlog.exceptions import DropEvent
from structlog.stdlib import BoundLogger
from structlog.typing import EventDict, Processor, WrappedLogger

from branch_permissions.config.settings import log_dir


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message} | {extra}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{line} | {message} | {extra}"
DEFAULT_LOG_FILENAME = "branch-permissions.log"


@dataclass(slots=True)
class LoggingOptions:
    level: LogLevel = "INFO"
    debug: bool = False
    file_logging: bool = True
    log_path: Path | None = None
    rotation: str = "5 MB"
    retention: int = 5


@dataclass(slots=True)
class _LoggingState:
    configured: bool = False
    file_path: Path | None = None


_state = _LoggingState()


def configure_logging(options: LoggingOptions | None = None) -> Path | None:
    """Send structlog events to loguru: stderr always, a rotating file optionally.

    Safe to call repeatedly; each call replaces the previous sinks. Returns
    the log file path, or ``None`` when file logging is off.
    """

    opts = options or LoggingOptions()
    console_level: LogLevel = "DEBUG" if opts.debug else opts.level

    loguru_logger.remove()
    loguru_logger.add(
        sys.stderr,
        level=console_level,
        format=CONSOLE_FORMAT,
        backtrace=opts.debug,
        diagnose=opts.debug,
    )
    file_path = _add_file_sink(opts) if opts.file_logging else None

    structlog.configure(
        processors=_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, console_level)
        ),
        cache_logger_on_first_use=False,
    )

    _state.configured = True
    _state.file_path = file_path
    return file_path


def _add_file_sink(opts: LoggingOptions) -> Path:
    path = opts.log_path or (log_dir() / DEFAULT_LOG_FILENAME)
    loguru_logger.add(
        path,
        level="DEBUG",
        format=FILE_FORMAT,
        rotation=opts.rotation,
        retention=opts.retention,
        encoding="utf-8",
        enqueue=True,
    )
    return path


def _processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        _forward_to_loguru,
    ]


def _forward_to_loguru(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    # Terminal processor: loguru owns formatting and sinks from here on.
    level = str(event_dict.pop("level", "info")).upper()
    message = str(event_dict.pop("event", ""))
    traceback_text = event_dict.pop("exception", None)
    if traceback_text:
        message = f"{message}\n{traceback_text}"
    loguru_logger.bind(**event_dict).opt(depth=6).log(level, message)
    raise DropEvent


def get_logger(*initial_values: object, **initial_kw: object) -> BoundLogger:
    if not _state.configured:
        configure_logging()
    return cast(BoundLogger, structlog.get_logger(*initial_values, **initial_kw))


def log_file_path() -> Path | None:
    if not _state.configured:
        return configure_logging()
    return _state.file_path


__all__ = [
    "LogLevel",
    "LoggingOptions",
    "configure_logging",
    "get_logger",
    "log_file_path",
]
