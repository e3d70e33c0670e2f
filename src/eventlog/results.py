"""Structured outcomes shared by loggers, sinks and session services.

A `Result` carries an ok/error flag, an integer error code, a message and an
optional payload. It is the value logged into events and the value returned by
operations whose failures are managed rather than raised.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ResultCode(IntEnum):
    OK = 0
    UNMANAGED = 1
    DEPTH_MISMATCH = 2
    FILE_NOT_FOUND = 3
    SINK_WRITE_FAILED = 4
    INDEX_OUT_OF_RANGE = 5


class Result(BaseModel):
    """An ok/error outcome with an optional payload."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    error: int = 0
    message: str = ""
    payload: Any | None = None

    @classmethod
    def success(cls, payload: Any | None = None, message: str = "") -> Result:
        """Build an ok result."""
        return cls(ok=True, error=0, message=message, payload=payload)

    @classmethod
    def failure(cls, code: int, message: str, payload: Any | None = None) -> Result:
        """Build a non-ok result; `code` must not be `ResultCode.OK`."""
        if code == ResultCode.OK:
            raise ValueError("failure results need a non-zero error code")
        return cls(ok=False, error=int(code), message=message, payload=payload)

    @classmethod
    def unmanaged(cls, message: str) -> Result:
        """Wrap an unexpected low-level failure."""
        return cls.failure(ResultCode.UNMANAGED, message)


class ResultError(RuntimeError):
    """Raised where a value must be returned but a managed failure occurred."""

    def __init__(self, result: Result):
        """Create an error carrying the non-ok result."""
        self.result = result
        super().__init__(f"[{result.error}] {result.message}")


def round_to_significant(value: float, digits: int) -> float:
    """Round `value` to `digits` significant digits."""
    if digits <= 0:
        raise ValueError(f"digits must be > 0. Got: {digits}")
    return float(f"{value:.{digits}g}")
