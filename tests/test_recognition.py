from __future__ import annotations

import pydantic as pyd
import pytest

from conftest import FakeEngine
from conftest import settle
from consulta.lib.diagnostics import Diagnostics
from consulta.lib.recognition import Ended
from consulta.lib.recognition import Fault
from consulta.lib.recognition import Final
from consulta.lib.recognition import Interim
from consulta.lib.recognition import RecognitionError
from consulta.lib.recognition import event_adapter
from consulta.lib.recognition import normalize
from consulta.lib.recognition.adapter import RecognitionAdapter


def make_adapter(engine: FakeEngine, **kwargs) -> tuple[RecognitionAdapter, list]:
    adapter = RecognitionAdapter(engine, **kwargs)
    events: list = []
    adapter.listen(events.append)
    return adapter, events


def test_normalize_results() -> None:
    payload = {
        "type": "result",
        "index": 1,
        "results": [
            {"transcript": "antigo", "isFinal": True},
            {"transcript": "dor de cabeça", "isFinal": True},
            {"transcript": "há três", "isFinal": False},
            {"transcript": " dias", "isFinal": False},
        ],
    }
    assert normalize(payload) == [Final(text="dor de cabeça"), Interim(text="há três dias")]


def test_normalize_error_and_end() -> None:
    assert normalize({"type": "error", "error": "network"}) == [Fault(code="network")]
    assert normalize({"type": "end"}) == [Ended()]


def test_normalize_rejects_malformed_payloads() -> None:
    with pytest.raises(pyd.ValidationError):
        normalize({"type": "result"})
    with pytest.raises(pyd.ValidationError):
        normalize({"type": "unknown"})


def test_events_round_trip_by_kind() -> None:
    event = event_adapter.validate_python({"kind": "fault", "code": "not-allowed"})
    assert isinstance(event, Fault)
    assert event.code == "not-allowed"


async def test_results_reach_listeners_in_order() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine)
    await adapter.start()

    engine.interim("bom")
    engine.final("bom dia")
    engine.final("doutor")
    assert events == [Interim(text="bom"), Final(text="bom dia"), Final(text="doutor")]


async def test_stop_does_not_restart() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine)
    await adapter.start()
    await adapter.stop()
    await settle()

    assert engine.start_calls == 1
    assert engine.stop_calls == 1
    assert not adapter.running
    assert not adapter.should_run
    assert events == []


async def test_unrequested_end_restarts() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine)
    await adapter.start()

    engine.error("no-speech")
    engine.end()
    await settle()

    assert engine.start_calls == 2
    assert adapter.running
    assert events == []


async def test_restart_gives_up_after_max_attempts() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine, max_restart_attempts=2)
    await adapter.start()

    engine.fail_starts = 5
    engine.end()
    await settle()

    assert engine.start_calls == 3
    assert not adapter.running
    assert [e.code for e in events] == ["restart-failed"]


async def test_engine_dying_right_after_restart_is_given_up() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine, max_restart_attempts=3)
    await adapter.start()

    for _ in range(4):
        engine.end()
        await settle()

    assert engine.start_calls == 4
    assert not adapter.running
    assert events == [
        Fault(code="restart-failed", message="Recognition engine could not be restarted")
    ]


async def test_results_refill_the_restart_budget() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine, max_restart_attempts=3)
    await adapter.start()

    for _ in range(2):
        engine.end()
        await settle()
    engine.final("ainda aqui")
    for _ in range(2):
        engine.end()
        await settle()

    assert engine.start_calls == 5
    assert adapter.running
    assert events == [Final(text="ainda aqui")]


async def test_stop_while_restarting_stops_the_engine() -> None:
    engine = FakeEngine()
    adapter, _ = make_adapter(engine)
    await adapter.start()

    engine.end()
    await adapter.stop()
    await settle()

    assert not adapter.running
    assert not engine.running


async def test_transient_and_engine_errors() -> None:
    diagnostics = Diagnostics()
    engine = FakeEngine()
    adapter, events = make_adapter(engine, diagnostics=diagnostics)
    await adapter.start()

    engine.error("aborted")
    engine.error("not-allowed", "permission revoked")
    assert events == [Fault(code="not-allowed", message="permission revoked")]
    warnings = diagnostics.entries(level="WARNING", tag="consulta.lib.recognition")
    assert len(warnings) == 1
    assert "not-allowed" in warnings[0].message


async def test_malformed_payload_is_dropped() -> None:
    diagnostics = Diagnostics()
    engine = FakeEngine()
    adapter, events = make_adapter(engine, diagnostics=diagnostics)
    await adapter.start()

    engine.emit({"type": "result", "results": "nope"})
    engine.emit(None)
    engine.final("ok")
    assert events == [Final(text="ok")]
    assert len(diagnostics.entries(level="WARNING")) == 2


async def test_start_failure() -> None:
    engine = FakeEngine(fail_starts=1)
    adapter, _ = make_adapter(engine)

    with pytest.raises(RecognitionError) as excinfo:
        await adapter.start()
    assert excinfo.value.error_code == "audio-capture"
    assert not adapter.should_run

    await adapter.start()
    assert adapter.running


async def test_failing_listener_does_not_block_others() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine)

    def broken(event) -> None:
        raise RuntimeError("boom")

    adapter.listen(broken)
    adapter.listen(events.append)
    await adapter.start()
    engine.final("texto")
    assert events == [Final(text="texto"), Final(text="texto")]


async def test_close_detaches() -> None:
    engine = FakeEngine()
    adapter, events = make_adapter(engine)
    await adapter.start()
    await adapter.close()

    engine.final("tarde demais")
    assert events == []
    assert adapter.closed
    with pytest.raises(RecognitionError):
        await adapter.start()
