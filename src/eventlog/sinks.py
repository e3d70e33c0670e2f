"""Logger sinks (output transports).

Sinks are synchronous: the logger runs each write in a worker thread so file
and database I/O never blocks the event loop.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from pprint import pformat
from typing import Any, Protocol

import duckdb

from .models import LoggerSnapshot
from .results import Result


class SinkKind(str, Enum):
    """Registry key for a sink; flush order follows `FLUSH_ORDER`."""

    CONSOLE = "console"
    FILE = "file"
    LOCAL_STORE = "local_store"
    REMOTE_STORE = "remote_store"


FLUSH_ORDER: tuple[SinkKind, ...] = (SinkKind.FILE, SinkKind.LOCAL_STORE, SinkKind.REMOTE_STORE)

# Separator between snapshots in a session file. The file has no enclosing
# array; readers wrap the contents in `[` and `]` before parsing.
FILE_ENTRY_SEPARATOR = ",\n"


class LoggerSink(Protocol):
    """A synchronous destination for flushed logger snapshots."""

    kind: SinkKind

    def write(self, snapshot: LoggerSnapshot) -> None:
        """Persist a single snapshot."""

    def close(self) -> None:
        """Close any underlying resources."""


class ConsoleSink:
    """Echoes logged results to stdout as they happen; never flushed."""

    kind = SinkKind.CONSOLE

    def echo(self, logger_name: str, class_name: str, method: str, result: Result) -> None:
        """Print a header, the error code and message, then the payload if any."""
        print(f"{logger_name} => {class_name}.{method}:")
        print(f"    (code:{result.error}) message: {result.message}")
        if result.payload:
            print(pformat(result.payload))

    def write(self, snapshot: LoggerSnapshot) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""


class FileSink:
    """Appends snapshots to a session file as comma-separated JSON objects."""

    kind = SinkKind.FILE

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def write(self, snapshot: LoggerSnapshot) -> None:
        """Append one snapshot, prefixed by a separator unless the file is empty."""
        with self._lock:
            is_first = not self.path.exists() or self.path.stat().st_size == 0
            text = ("" if is_first else FILE_ENTRY_SEPARATOR) + snapshot.to_json(indent=2)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(text)

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""


class DocumentCollection(Protocol):
    """The narrow slice of a document-store collection used by the store sink."""

    def insert_one(self, document: dict[str, Any]) -> Any:
        """Insert a single document."""


class DocumentStoreSink:
    """Inserts one document per flush into a collection."""

    def __init__(self, collection: DocumentCollection, *, kind: SinkKind = SinkKind.LOCAL_STORE) -> None:
        if kind not in (SinkKind.LOCAL_STORE, SinkKind.REMOTE_STORE):
            raise ValueError(f"document store sinks must be local or remote. Got: {kind!r}")
        self.kind = kind
        self.collection = collection

    def write(self, snapshot: LoggerSnapshot) -> None:
        """Insert the snapshot as one document."""
        self.collection.insert_one(snapshot.to_document())

    def close(self) -> None:
        """Close the collection when it supports closing."""
        close = getattr(self.collection, "close", None)
        if callable(close):
            close()


class InMemoryCollection:
    """In-memory collection for tests and local debugging."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: list[dict[str, Any]] = []

    def insert_one(self, document: dict[str, Any]) -> None:
        """Append a document to the in-memory list (thread-safe)."""
        with self._lock:
            self._documents.append(document)

    def snapshot(self) -> Sequence[dict[str, Any]]:
        """Return a point-in-time copy of all inserted documents."""
        with self._lock:
            return list(self._documents)


@dataclass(frozen=True)
class DuckDBOptions:
    path: Path
    table: str = "logger_snapshots"


class DuckDBCollection:
    """DuckDB-backed collection for durable local persistence of snapshots.

    Each document is stored whole as JSON, with a few columns pulled out so
    sessions can be filtered without parsing.
    """

    def __init__(self, *, path: str | Path, table: str = "logger_snapshots") -> None:
        """Create (or open) a DuckDB-backed collection at the given path."""
        self._opts = DuckDBOptions(path=Path(path), table=table)
        self._lock = threading.Lock()
        self._conn = duckdb.connect(str(self._opts.path))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        create_sql = f"""
        create table if not exists {self._opts.table} (
          session varchar not null,
          logger_id integer not null,
          name varchar not null,
          creation_time varchar not null,
          has_errors boolean not null,
          document_json varchar not null
        )
        """
        with self._lock:
            self._conn.execute(create_sql)

    def insert_one(self, document: dict[str, Any]) -> None:
        """Insert a single snapshot document."""
        document_json = json.dumps(document, separators=(",", ":"), default=str)
        insert_sql = f"""
        insert into {self._opts.table}
        (session, logger_id, name, creation_time, has_errors, document_json)
        values (?, ?, ?, ?, ?, ?)
        """
        with self._lock:
            self._conn.execute(
                insert_sql,
                [
                    document.get("session", ""),
                    document.get("id", 0),
                    document.get("name", ""),
                    str(document.get("creationTime", "")),
                    bool(document.get("hasErrors", False)),
                    document_json,
                ],
            )

    def find(self, session: str | None = None) -> list[dict[str, Any]]:
        """Return stored documents in insertion order, optionally for one session."""
        select_sql = f"select document_json from {self._opts.table}"
        params: list[Any] = []
        if session is not None:
            select_sql += " where session = ?"
            params.append(session)
        with self._lock:
            rows = self._conn.execute(select_sql, params).fetchall()
        return [json.loads(row[0]) for row in rows]

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()
