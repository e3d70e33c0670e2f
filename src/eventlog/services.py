"""Browse and purge persisted logger sessions.

Session files hold comma-separated logger snapshots without an enclosing
array, so the reader wraps the raw text in `[` and `]` before parsing.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter

from .models import LoggerSnapshot
from .results import Result, ResultCode, ResultError

logger = logging.getLogger(__name__)

_SNAPSHOTS = TypeAdapter(list[LoggerSnapshot])


class SessionLogsService(Protocol):
    """Capabilities of a backing store for persisted sessions."""

    async def ensure_loaded(self) -> Result: ...

    async def load_sessions(self) -> Result: ...

    async def load_loggers_from_session_index(self, index: int) -> list[LoggerSnapshot]: ...

    async def purge_old_sessions(self, keep_last_n: int) -> Result: ...


class FsSessionLogsService:
    """Session files in one data folder, newest first by descending name."""

    def __init__(self, data_folder: str | Path, *, extension: str = ".log") -> None:
        self.data_folder = Path(data_folder)
        self.extension = extension
        self.sessions: list[str] = []

    @property
    def is_ready(self) -> bool:
        return bool(self.sessions)

    def _list_session_files(self) -> list[str]:
        if not self.data_folder.is_dir():
            return []
        names = [p.name for p in self.data_folder.iterdir() if p.is_file() and p.suffix == self.extension]
        return sorted(names, reverse=True)

    async def load_sessions(self) -> Result:
        """Re-read the session list from disk (most recent first)."""
        self.sessions = await asyncio.to_thread(self._list_session_files)
        return Result.success(payload=len(self.sessions))

    async def ensure_loaded(self) -> Result:
        """Load the session list unless it is already cached."""
        if self.is_ready:
            return Result.success(payload=len(self.sessions))
        return await self.load_sessions()

    async def load_loggers_from_session_index(self, index: int) -> list[LoggerSnapshot]:
        """Parse the loggers stored in the session file at `index`.

        Raises `ResultError` when the index or the file does not exist. A
        malformed file raises `pydantic.ValidationError`.
        """
        await self.ensure_loaded()

        if not 0 <= index < len(self.sessions):
            raise ResultError(
                Result.failure(
                    ResultCode.INDEX_OUT_OF_RANGE,
                    f"{type(self).__name__}: session index [{index}] is out of range "
                    f"({len(self.sessions)} sessions).",
                )
            )

        file = (self.data_folder / self.sessions[index]).resolve()
        if not file.is_file():
            raise ResultError(
                Result.failure(
                    ResultCode.FILE_NOT_FOUND,
                    f"{type(self).__name__}: file [{file}] does not exist!",
                )
            )

        raw = await asyncio.to_thread(file.read_text, encoding="utf-8")
        return _SNAPSHOTS.validate_json("[" + raw + "]")

    async def purge_old_sessions(self, keep_last_n: int) -> Result:
        """Delete every session file older than the newest `keep_last_n`."""
        if keep_last_n < 0:
            raise ValueError(f"keep_last_n must be >= 0. Got: {keep_last_n}")

        await self.ensure_loaded()
        try:
            await asyncio.to_thread(self._remove_session_files, keep_last_n)
        except OSError as exc:
            return Result.unmanaged(f"Error purging old session files: {exc}")
        return Result.success(payload=len(self.sessions))

    def _remove_session_files(self, keep_last_n: int) -> None:
        while len(self.sessions) > keep_last_n:
            file = (self.data_folder / self.sessions[-1]).resolve()
            file.unlink()
            logger.info("Deleted session file: %s", file)
            self.sessions.pop()
