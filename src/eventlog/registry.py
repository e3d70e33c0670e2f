"""Sink registry and session counters shared by all loggers of a process.

The registry is constructed explicitly and handed to each `Logger`, so one
instance plays the part of the process-wide table without hidden globals.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from .sinks import ConsoleSink, DocumentCollection, DocumentStoreSink, FileSink, LoggerSink, SinkKind

logger = logging.getLogger(__name__)


class SinkRegistry:
    """Active sinks keyed by kind, plus the current session and its counters."""

    def __init__(self, session: str = "") -> None:
        self._sinks: dict[SinkKind, LoggerSink] = {}
        self._session = session
        self._next_id = 0
        self._flush_count = 0

    @property
    def session(self) -> str:
        """Name of the current session."""
        return self._session

    @property
    def flush_count(self) -> int:
        """Number of flushes performed in the current session."""
        return self._flush_count

    @property
    def kinds(self) -> list[SinkKind]:
        """Kinds currently registered, in registration order."""
        return list(self._sinks)

    def set_session(self, name: str) -> None:
        """Start a new session: ids restart at 1 and the flush count at 0.

        Registered sinks are left untouched.
        """
        self._session = name
        self._next_id = 0
        self._flush_count = 0

    def next_logger_id(self) -> int:
        """Assign the next logger id in the current session (first is 1)."""
        self._next_id += 1
        return self._next_id

    def record_flush(self) -> None:
        """Count one more flush in the current session."""
        self._flush_count += 1

    def has(self, kind: SinkKind) -> bool:
        """Return True if a sink of `kind` is registered."""
        return kind in self._sinks

    def get(self, kind: SinkKind) -> LoggerSink | None:
        """Return the sink registered for `kind`, if any."""
        return self._sinks.get(kind)

    def add_console_sink(self) -> ConsoleSink:
        """Register the console sink, replacing any previous one."""
        sink = ConsoleSink()
        self._sinks[SinkKind.CONSOLE] = sink
        return sink

    def add_file_sink(self, directory: str | Path, file_name: str) -> FileSink:
        """Register the file sink at `directory/file_name`.

        The directory must already exist and be writable. Anything else is a
        deployment error: the cause is logged and the process exits.
        """
        path = Path(directory).resolve()
        if not path.is_dir():
            logger.critical("Log directory %s does not exist; cannot register the file sink.", path)
            sys.exit(1)
        if not os.access(path, os.W_OK):
            logger.critical("No write permission on %s; cannot register the file sink.", path)
            sys.exit(1)

        sink = FileSink(path / file_name)
        self._sinks[SinkKind.FILE] = sink
        return sink

    def add_document_store_sink(self, collection: DocumentCollection, is_local: bool) -> DocumentStoreSink:
        """Register `collection` as the local or the remote document store."""
        kind = SinkKind.LOCAL_STORE if is_local else SinkKind.REMOTE_STORE
        sink = DocumentStoreSink(collection, kind=kind)
        self._sinks[kind] = sink
        return sink

    def clear_sinks(self) -> None:
        """Remove every registration without closing the sinks."""
        self._sinks.clear()

    def close(self) -> None:
        """Close every registered sink and clear the table."""
        for sink in self._sinks.values():
            sink.close()
        self._sinks.clear()
