"""Shared utility helpers for branch permission tooling."""

from .logging import LoggingOptions, configure_logging, get_logger, log_file_path
from .progress import (
    NullProgressSink,
    ProgressCallback,
    ProgressPhase,
    ProgressSink,
    ProgressSnapshot,
    ProgressState,
    ProgressUpdate,
)

__all__ = [
    "LoggingOptions",
    "configure_logging",
    "get_logger",
    "log_file_path",
    "NullProgressSink",
    "ProgressCallback",
    "ProgressPhase",
    "ProgressSink",
    "ProgressSnapshot",
    "ProgressState",
    "ProgressUpdate",
]
