"""Embeddable event/profiling recorder.

This package provides:
- Per-unit-of-work loggers that buffer timestamped events with optional results.
- A sink registry (console echo, append-only session file, document stores)
  shared by all loggers of a process, with session-scoped id and flush counters.
- A service that reads persisted session files back and purges old ones.
"""

from .logger import Logger
from .models import EventRecord, LoggerSnapshot
from .registry import SinkRegistry
from .results import Result, ResultCode, ResultError
from .services import FsSessionLogsService, SessionLogsService
from .sinks import (
    ConsoleSink,
    DocumentCollection,
    DocumentStoreSink,
    DuckDBCollection,
    FileSink,
    InMemoryCollection,
    LoggerSink,
    SinkKind,
)

__all__ = [
    "ConsoleSink",
    "DocumentCollection",
    "DocumentStoreSink",
    "DuckDBCollection",
    "EventRecord",
    "FileSink",
    "FsSessionLogsService",
    "InMemoryCollection",
    "Logger",
    "LoggerSink",
    "LoggerSnapshot",
    "Result",
    "ResultCode",
    "ResultError",
    "SessionLogsService",
    "SinkKind",
    "SinkRegistry",
]
