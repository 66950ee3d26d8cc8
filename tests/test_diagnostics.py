from __future__ import annotations

import pytest

from consulta.helper.mixin import LoggingMixin
from consulta.lib.diagnostics import Diagnostics


def test_derived_loggers_share_the_buffer() -> None:
    diagnostics = Diagnostics(capacity=10, context={"app": "consulta"})
    recording = diagnostics.with_tag("consulta.service.recording")
    scoped = recording.with_context(session_id="session-1")

    recording.info("Session started")
    scoped.warning("Autosave failed", attempt=2)

    assert len(diagnostics) == 2
    first, second = diagnostics.entries()
    assert first.tag == "consulta.service.recording"
    assert first.context == {"app": "consulta"}
    assert second.level == "WARNING"
    assert second.context == {"app": "consulta", "session_id": "session-1", "attempt": 2}


def test_buffer_is_bounded() -> None:
    diagnostics = Diagnostics(capacity=3)
    for i in range(5):
        diagnostics.debug(f"entry {i}")
    assert [e.message for e in diagnostics.entries()] == ["entry 2", "entry 3", "entry 4"]
    assert diagnostics.capacity == 3


def test_entries_filter_and_clear() -> None:
    diagnostics = Diagnostics()
    diagnostics.with_tag("a").info("one")
    diagnostics.with_tag("b").error("two")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        diagnostics.with_tag("b").exception("three")

    assert [e.message for e in diagnostics.entries(tag="b")] == ["two", "three"]
    assert [e.message for e in diagnostics.entries(level="INFO")] == ["one"]

    diagnostics.clear()
    assert len(diagnostics) == 0


def test_logging_mixin_requires_a_tag() -> None:
    with pytest.raises(TypeError):

        class Untagged(LoggingMixin):
            pass

    class Tagged(LoggingMixin):
        __logtag__ = "consulta.test"

    diagnostics = Diagnostics()
    Tagged(diagnostics).logger.info("hello")
    assert diagnostics.entries()[0].tag == "consulta.test"
    assert Tagged().diagnostics is not diagnostics
