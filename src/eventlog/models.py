"""Event and snapshot models.

Records are serialised with the camelCase field names used by existing session
log files (`className`, `dateTimeStamp`, `hasErrors`, ...), while Python code
uses snake_case attributes. Both names are accepted on input.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .results import Result


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


def datetime_stamp() -> str:
    """Return a sortable wall-clock stamp (ISO 8601, UTC, milliseconds)."""
    return utc_now().isoformat(timespec="milliseconds")


def hrt_now() -> float:
    """Return a monotonic high-resolution clock sample in milliseconds."""
    return time.perf_counter() * 1000.0


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class EventRecord(_Model):
    """One buffered occurrence inside a logger."""

    # Nesting level of the profiling scope when the event was logged.
    depth: int = 0

    class_name: str = ""
    method: str = ""

    # Wall-clock stamp for humans; `hrt` for relative timing within a process.
    timestamp: str = Field(default_factory=datetime_stamp, alias="dateTimeStamp")
    hrt: float = Field(default_factory=hrt_now)

    result: Result | None = None


class LoggerSnapshot(_Model):
    """The full state of a logger at flush time, as written to every sink."""

    id: int
    session: str
    name: str
    creation_time: datetime
    creation_hrt: float
    events: list[EventRecord] = Field(default_factory=list)
    depth: int = 0
    has_errors: bool = False
    total_hrt: float = 0.0

    def to_document(self) -> dict:
        """Return a JSON-compatible dict with the on-disk field names.

        Payload values JSON cannot represent (exceptions, sets, ...) are
        written as their `str()` so the snapshot is never dropped.
        """
        return self.model_dump(mode="json", by_alias=True, fallback=str)

    def to_json(self, *, indent: int | None = 2) -> str:
        """Return the snapshot as JSON text, as appended to session files."""
        return self.model_dump_json(by_alias=True, indent=indent, fallback=str)
