from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from eventlog import InMemoryCollection, Logger, Result, ResultCode, SinkRegistry
from eventlog.results import round_to_significant


def _error() -> Result:
    return Result.failure(ResultCode.UNMANAGED, "import failed", {"row": 7})


def test_log_appends_events_in_call_order_with_depth(registry: SinkRegistry):
    lgr = Logger("Worker", registry=registry)

    lgr.log("A", "first")
    lgr.depth = 2
    lgr.log("B", "second")
    lgr.depth = 1
    ev = lgr.log("C", "third")

    assert [(e.class_name, e.method, e.depth) for e in lgr.events] == [
        ("A", "first", 0),
        ("B", "second", 2),
        ("C", "third", 1),
    ]
    assert ev is lgr.events[-1]
    assert lgr.events[0].hrt <= lgr.events[1].hrt <= lgr.events[2].hrt


def test_has_errors_is_set_by_failures_and_never_reset(registry: SinkRegistry):
    lgr = Logger("Worker", registry=registry)

    lgr.log("A", "ok", Result.success())
    lgr.log("A", "plain")
    assert lgr.has_errors is False

    lgr.log("A", "bad", _error())
    lgr.log("A", "ok-again", Result.success())
    assert lgr.has_errors is True


def test_ids_increase_within_session_and_restart_on_new_session(registry: SinkRegistry):
    first = Logger("one", registry=registry)
    second = Logger("two", registry=registry)
    assert (first.id, second.id) == (1, 2)
    assert first.session == "batch-1"

    registry.set_session("S2")
    third = Logger("three", registry=registry)
    assert third.id == 1
    assert third.session == "S2"
    assert first.session == "batch-1"


def test_elapsed_since_start_is_zero_for_fewer_than_two_events(registry: SinkRegistry):
    lgr = Logger("Worker", registry=registry)
    assert lgr.elapsed_since_start() == 0
    lgr.log("A", "only")
    assert lgr.elapsed_since_start() == 0


def test_elapsed_since_start_rounds_delta_between_first_and_last(registry: SinkRegistry):
    lgr = Logger("Worker", registry=registry)
    for method in ["a", "b", "c"]:
        lgr.log("A", method)

    expected = round_to_significant(lgr.events[-1].hrt - lgr.events[0].hrt, 6)
    assert lgr.elapsed_since_start() == expected
    assert lgr.elapsed_since_start() >= 0


def test_round_to_significant():
    assert round_to_significant(1.23456789, 6) == 1.23457
    assert round_to_significant(123456789.0, 6) == 123457000.0
    assert round_to_significant(0.0, 6) == 0.0
    with pytest.raises(ValueError):
        round_to_significant(1.0, 0)


def test_console_sink_echoes_results_when_logged(registry: SinkRegistry, capsys: pytest.CaptureFixture[str]):
    registry.add_console_sink()
    lgr = Logger("Worker", registry=registry)

    lgr.log("Importer", "start")
    assert capsys.readouterr().out == ""

    lgr.log("Importer", "run", _error())
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Worker => Importer.run:"
    assert out[1] == "    (code:1) message: import failed"
    assert out[2] == "{'row': 7}"


def test_no_console_output_without_console_sink(registry: SinkRegistry, capsys: pytest.CaptureFixture[str]):
    lgr = Logger("Worker", registry=registry)
    lgr.log("Importer", "run", _error())
    assert capsys.readouterr().out == ""


@pytest.mark.asyncio
async def test_flush_example_scenario(tmp_path, registry: SinkRegistry):
    logs = tmp_path / "logs"
    logs.mkdir()
    registry.add_file_sink(logs, "app.log")

    lgr = Logger("Worker", registry=registry)
    lgr.log("Importer", "run", _error())
    elapsed = await lgr.flush()

    assert len(lgr.events) == 1
    assert lgr.has_errors is True
    assert elapsed >= 0
    assert lgr.flush_result is not None and lgr.flush_result.ok
    assert lgr.total_hrt >= 0
    assert registry.flush_count == 1

    text = (logs / "app.log").read_text(encoding="utf-8")
    assert not text.startswith(",")
    doc = json.loads(text)
    assert doc["name"] == "Worker"
    assert doc["session"] == "batch-1"
    assert doc["hasErrors"] is True
    assert doc["events"][0]["className"] == "Importer"
    assert doc["events"][0]["result"]["error"] == ResultCode.UNMANAGED


@pytest.mark.asyncio
async def test_flush_with_nonzero_depth_still_writes_and_reports_mismatch(tmp_path, registry: SinkRegistry):
    registry.add_file_sink(tmp_path, "s.log")
    store = InMemoryCollection()
    registry.add_document_store_sink(store, is_local=True)

    lgr = Logger("Worker", registry=registry)
    lgr.depth = 1
    lgr.log("A", "begin")
    elapsed = await lgr.flush()

    assert elapsed >= 0
    assert (tmp_path / "s.log").read_text(encoding="utf-8")
    assert len(store.snapshot()) == 1
    assert lgr.flush_result is not None
    assert lgr.flush_result.ok is False
    assert lgr.flush_result.error == ResultCode.DEPTH_MISMATCH
    assert "depth of: [1]" in lgr.flush_result.message


@pytest.mark.asyncio
async def test_flush_writes_to_stores_in_kind_order(registry: SinkRegistry):
    order: list[str] = []

    class _Recording:
        def __init__(self, label: str) -> None:
            self.label = label

        def insert_one(self, document):
            order.append(self.label)

    registry.add_document_store_sink(_Recording("remote"), is_local=False)
    registry.add_document_store_sink(_Recording("local"), is_local=True)

    await Logger("Worker", registry=registry).flush()

    assert order == ["local", "remote"]


@pytest.mark.asyncio
async def test_failing_sink_does_not_prevent_other_sinks(registry: SinkRegistry):
    class _Broken:
        def insert_one(self, document):
            raise ConnectionError("store unavailable")

    remote = InMemoryCollection()
    registry.add_document_store_sink(_Broken(), is_local=True)
    registry.add_document_store_sink(remote, is_local=False)

    lgr = Logger("Worker", registry=registry)
    lgr.log("A", "run")
    await lgr.flush()

    assert len(remote.snapshot()) == 1
    assert lgr.flush_result is not None
    assert lgr.flush_result.error == ResultCode.SINK_WRITE_FAILED
    assert lgr.flush_result.payload == {"failed_sinks": ["local_store"]}
    assert registry.flush_count == 1


@pytest.mark.asyncio
async def test_document_store_receives_full_snapshot(registry: SinkRegistry):
    store = InMemoryCollection()
    registry.add_document_store_sink(store, is_local=True)

    lgr = Logger("Worker", registry=registry)
    lgr.log("A", "one")
    lgr.log("A", "two", Result.success(payload=[1, 2]))
    await lgr.flush()

    (doc,) = store.snapshot()
    assert doc["id"] == lgr.id
    assert doc["session"] == "batch-1"
    assert doc["depth"] == 0
    assert doc["totalHrt"] == lgr.total_hrt
    assert [e["method"] for e in doc["events"]] == ["one", "two"]
    assert doc["events"][1]["result"]["payload"] == [1, 2]


def test_console_echo_without_payload_prints_two_lines(registry: SinkRegistry, capsys: pytest.CaptureFixture[str]):
    registry.add_console_sink()
    lgr = Logger("Worker", registry=registry)

    lgr.log("Importer", "run", Result.success(message="done"))

    assert capsys.readouterr().out.splitlines() == [
        "Worker => Importer.run:",
        "    (code:0) message: done",
    ]


@pytest.mark.asyncio
async def test_flush_writes_results_with_non_json_payloads(tmp_path, registry: SinkRegistry):
    registry.add_file_sink(tmp_path, "s.log")
    store = InMemoryCollection()
    registry.add_document_store_sink(store, is_local=True)

    lgr = Logger("Worker", registry=registry)
    lgr.log("Importer", "run", Result.failure(ResultCode.UNMANAGED, "boom", ValueError("bad row")))
    lgr.log("Importer", "tags", Result.success(payload={"tags": {"b", "a"}}))
    lgr.log("Importer", "at", Result.success(payload=datetime(2026, 10, 18, tzinfo=timezone.utc)))
    await lgr.flush()

    assert lgr.flush_result is not None and lgr.flush_result.ok

    file_doc = json.loads((tmp_path / "s.log").read_text(encoding="utf-8"))
    (store_doc,) = store.snapshot()
    for doc in (file_doc, store_doc):
        payloads = [e["result"]["payload"] for e in doc["events"]]
        assert payloads[0] == "bad row"
        assert sorted(payloads[1]["tags"]) == ["a", "b"]
        assert payloads[2].startswith("2026-10-18T00:00:00")


@pytest.mark.asyncio
async def test_unbalanced_scope_is_logged_and_reported_at_flush(registry: SinkRegistry):
    lgr = Logger("Worker", registry=registry)
    lgr.depth = -1
    event = lgr.log("A", "end")
    await lgr.flush()

    assert event.depth == -1
    assert lgr.flush_result is not None
    assert lgr.flush_result.error == ResultCode.DEPTH_MISMATCH
