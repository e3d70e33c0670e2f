from __future__ import annotations

import pytest

from eventlog import SinkRegistry


@pytest.fixture(autouse=True)
def _no_threads_in_unit_tests(monkeypatch: pytest.MonkeyPatch):
    """Run `asyncio.to_thread` inline for unit tests.

    Sink writes and session file reads go through `asyncio.to_thread`. Running
    them inline keeps unit tests deterministic and free of threadpool workers.
    """

    async def _to_thread(func, /, *args, **kwargs):  # noqa: ANN001, D401
        return func(*args, **kwargs)

    monkeypatch.setattr("eventlog.logger.asyncio.to_thread", _to_thread)
    monkeypatch.setattr("eventlog.services.asyncio.to_thread", _to_thread)
    yield


@pytest.fixture
def registry() -> SinkRegistry:
    return SinkRegistry(session="batch-1")
