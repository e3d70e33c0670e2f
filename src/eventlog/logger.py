"""Per-unit-of-work event buffer and its flush engine."""

from __future__ import annotations

import asyncio
import logging
import time

from .models import EventRecord, LoggerSnapshot, hrt_now, utc_now
from .registry import SinkRegistry
from .results import Result, ResultCode, round_to_significant
from .sinks import FLUSH_ORDER, ConsoleSink, SinkKind

_log = logging.getLogger(__name__)


class Logger:
    """Buffers events for one unit of work and flushes them to every sink.

    Members:
    - `id`: unique within the registry's session, starting at 1
    - `session`: session name captured at construction
    - `events`: append-only, in call order
    - `depth`: nesting counter owned by the surrounding profiling scope
    - `has_errors`: set once any logged result is not ok
    - `total_hrt`: milliseconds from creation to flush, set by `flush()`
    - `flush_result`: outcome of the last flush
    """

    def __init__(self, name: str, *, registry: SinkRegistry) -> None:
        self._registry = registry
        self.id = registry.next_logger_id()
        self.session = registry.session
        self.name = name
        self.creation_time = utc_now()
        self.creation_hrt = hrt_now()
        self.events: list[EventRecord] = []
        self.depth = 0
        self.has_errors = False
        self.total_hrt = 0.0
        self.flush_result: Result | None = None

    def log(self, class_name: str, method: str, result: Result | None = None) -> EventRecord:
        """Record an event at the current depth and return it.

        A result is echoed immediately when a console sink is registered.
        """
        event = EventRecord(depth=self.depth, class_name=class_name, method=method, result=result)
        self.events.append(event)

        if result is not None:
            if not result.ok:
                self.has_errors = True
            console = self._registry.get(SinkKind.CONSOLE)
            if isinstance(console, ConsoleSink):
                console.echo(self.name, class_name, method, result)
        return event

    def snapshot(self) -> LoggerSnapshot:
        """Return the full serialisable state of the logger."""
        return LoggerSnapshot(
            id=self.id,
            session=self.session,
            name=self.name,
            creation_time=self.creation_time,
            creation_hrt=self.creation_hrt,
            events=list(self.events),
            depth=self.depth,
            has_errors=self.has_errors,
            total_hrt=self.total_hrt,
        )

    async def flush(self) -> float:
        """Write the logger to every registered sink; return the flush time in ms.

        Sinks are written sequentially (file, local store, remote store). A
        failing sink is logged and skipped so the others are still attempted.
        A non-zero depth is reported through `flush_result` once the writes
        are done.
        """
        started = time.perf_counter()
        self.total_hrt = hrt_now() - self.creation_hrt

        snapshot = self.snapshot()
        failed: list[str] = []
        for kind in FLUSH_ORDER:
            sink = self._registry.get(kind)
            if sink is None:
                continue
            try:
                await asyncio.to_thread(sink.write, snapshot)
            except Exception:  # noqa: BLE001 - one sink must not block the others
                _log.exception("Logger %s (id=%s) failed writing to the %s sink.", self.name, self.id, kind.value)
                failed.append(kind.value)

        self._registry.record_flush()

        self.flush_result = self._validate_flush(failed)
        if not self.flush_result.ok:
            _log.warning(self.flush_result.message)

        return (time.perf_counter() - started) * 1000.0

    def _validate_flush(self, failed: list[str]) -> Result:
        payload = {"failed_sinks": failed} if failed else None
        if self.depth != 0:
            return Result.failure(
                ResultCode.DEPTH_MISMATCH,
                f"The logger with ID=[{self.id}], named: [{self.name}] was flushed with depth of: "
                f"[{self.depth}] instead of Zero. There are mismatches in begin-end profiling.",
                payload,
            )
        if failed:
            return Result.failure(
                ResultCode.SINK_WRITE_FAILED,
                f"The logger with ID=[{self.id}], named: [{self.name}] could not be written to: {', '.join(failed)}.",
                payload,
            )
        return Result.success()

    def elapsed_since_start(self) -> float:
        """Spread between the first and last event in ms, 6 significant digits."""
        if len(self.events) < 2:
            return 0.0
        delta = self.events[-1].hrt - self.events[0].hrt
        return round_to_significant(delta, 6)
