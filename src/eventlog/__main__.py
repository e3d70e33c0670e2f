"""Demo entrypoint wiring the recorder together.

This module is a small end-to-end exercise that:

- Loads configuration from environment and configures logging.
- Builds the sink registry for the configured session.
- Logs a few events (one failing) on two loggers and flushes them.
- Reads the newest session file back and purges old sessions.

It is a manual integration harness, not production orchestration logic.
"""

from __future__ import annotations

import asyncio
import logging

from eventlog.config import build_registry, configure_logging, load_config
from eventlog import FsSessionLogsService, Logger, Result, ResultCode, ResultError

_log = logging.getLogger(__name__)


async def run_demo() -> None:
    """Flush two loggers, then read the session back and apply retention."""
    cfg = load_config()
    configure_logging(cfg.log_level)
    registry = build_registry(cfg)

    try:
        importer = Logger("Importer", registry=registry)
        importer.log("Importer", "open")
        importer.depth += 1
        importer.log("Importer", "read", Result.success(payload={"rows": 3}))
        importer.log("Importer", "parse", Result.failure(ResultCode.UNMANAGED, "row 2 is malformed", {"row": 2}))
        importer.depth -= 1
        importer.log("Importer", "close")
        elapsed = await importer.flush()
        _log.info("Flushed %s in %.3f ms (spread %.3f ms).", importer.name, elapsed, importer.elapsed_since_start())

        exporter = Logger("Exporter", registry=registry)
        exporter.log("Exporter", "run", Result.success(message="done"))
        await exporter.flush()
    finally:
        registry.close()

    service = FsSessionLogsService(cfg.data_folder, extension=cfg.file_extension)
    await service.load_sessions()
    if service.is_ready:
        try:
            loggers = await service.load_loggers_from_session_index(0)
        except ResultError as exc:
            _log.error(exc.result.message)
        else:
            for snapshot in loggers:
                print(f"[{snapshot.session}#{snapshot.id}] {snapshot.name}: {len(snapshot.events)} events")

    purged = await service.purge_old_sessions(cfg.keep_sessions)
    if not purged.ok:
        _log.error(purged.message)


def main() -> None:
    """CLI entrypoint for running the demo with `python -m eventlog`."""
    asyncio.run(run_demo())

if __name__ == "__main__":
    main()
