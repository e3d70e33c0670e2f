"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting environment variables into a strongly-typed Pydantic model.
- Building a `SinkRegistry` and configuring stdlib logging from that model.
"""

import logging
import os
from pathlib import Path
from typing import TypeVar

import dotenv
from pydantic import BaseModel, Field, field_validator

from .registry import SinkRegistry
from .sinks import DuckDBCollection

_T = TypeVar("_T", int, float)


def _get_env_str(name: str, default: str) -> str:
    """Read a string env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _get_env_bool(name: str, default: bool) -> bool:
    """Read a boolean env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    normalized = raw.strip().lower()
    if normalized in {"true", "1", "yes", "y", "on"}:
        return True
    if normalized in {"false", "0", "no", "n", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean (true/false). Got: {raw!r}")


def _get_env_number(name: str, default: _T, cast: type[_T]) -> _T:
    """Read an int/float env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a {cast.__name__}. Got: {raw!r}") from exc


class RecorderConfig(BaseModel):
    """Where loggers are flushed and how long sessions are kept."""

    session: str = Field(default="default", description="Initial session name")
    data_folder: Path = Field(default=Path("./logs"), description="Folder holding session files")
    file_extension: str = Field(default=".log", description="Session file extension")
    console: bool = Field(default=False, description="Echo logged results to stdout")
    file_sink: bool = Field(default=True, description="Append flushed loggers to the session file")
    duckdb_path: Path | None = Field(default=None, description="Local DuckDB document store")
    keep_sessions: int = Field(default=10, description="Session files kept when purging")
    log_level: str = Field(default="INFO", description="Stdlib logging level")

    @property
    def session_file_name(self) -> str:
        """File name of the current session inside `data_folder`."""
        return f"{self.session}{self.file_extension}"

    @field_validator("session")
    def validate_session(cls, v: str) -> str:
        """Session names become file names, so they must be non-empty."""
        if not v.strip():
            raise ValueError("EVENTLOG_SESSION must not be empty.")
        return v

    @field_validator("file_extension")
    def validate_file_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"EVENTLOG_FILE_EXTENSION must look like '.log'. Got: {v!r}")
        return v

    @field_validator("keep_sessions")
    def validate_keep_sessions(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"EVENTLOG_KEEP_SESSIONS must be >= 0. Got: {v}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"EVENTLOG_LOG_LEVEL is not a logging level. Got: {v!r}")
        return level


def load_config() -> RecorderConfig:
    """Load recorder configuration from environment variables.

    Calls `dotenv.load_dotenv()` first so local `.env` values are visible.
    """
    dotenv.load_dotenv()

    duckdb_path = _get_env_str("EVENTLOG_DUCKDB_PATH", "")
    return RecorderConfig(
        session=_get_env_str("EVENTLOG_SESSION", "default"),
        data_folder=Path(_get_env_str("EVENTLOG_DATA_FOLDER", "./logs")),
        file_extension=_get_env_str("EVENTLOG_FILE_EXTENSION", ".log"),
        console=_get_env_bool("EVENTLOG_CONSOLE", False),
        file_sink=_get_env_bool("EVENTLOG_FILE_SINK", True),
        duckdb_path=Path(duckdb_path) if duckdb_path else None,
        keep_sessions=_get_env_number("EVENTLOG_KEEP_SESSIONS", 10, int),
        log_level=_get_env_str("EVENTLOG_LOG_LEVEL", "INFO"),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root stdlib logging with a timestamped single-line format."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_registry(cfg: RecorderConfig) -> SinkRegistry:
    """Create a registry for the configured session with the configured sinks.

    The data folder is created if needed; registering the file sink still
    exits the process when the folder is not writable.
    """
    registry = SinkRegistry(session=cfg.session)
    if cfg.console:
        registry.add_console_sink()
    if cfg.file_sink:
        cfg.data_folder.mkdir(parents=True, exist_ok=True)
        registry.add_file_sink(cfg.data_folder, cfg.session_file_name)
    if cfg.duckdb_path is not None:
        registry.add_document_store_sink(DuckDBCollection(path=cfg.duckdb_path), is_local=True)
    return registry
