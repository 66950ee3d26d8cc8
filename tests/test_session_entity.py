from __future__ import annotations

import datetime

import pytest

from consulta.entity.session import RecordingSession
from consulta.exceptions import InvalidStateError
from consulta.exceptions import ValidationError
from consulta.valueobj.session import SessionStatus

NOW = datetime.datetime(2024, 3, 5, 14, 7)


def new_session(**kwargs) -> RecordingSession:
    params = {"patient_id": "p1", "device_id": "mic1", "title": "Consulta A"} | kwargs
    return RecordingSession.new(**params)


@pytest.mark.parametrize(
    ("kwargs", "reason"),
    [
        ({"patient_id": ""}, "patient_required"),
        ({"patient_id": "   "}, "patient_required"),
        ({"device_id": ""}, "device_required"),
        ({"title": " "}, "title_required"),
    ],
)
def test_new_validates_operator_input(kwargs: dict, reason: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        new_session(**kwargs)
    assert excinfo.value.reason == reason


def test_title_is_derived_from_patient_name() -> None:
    session = new_session(title=None, patient_name=" Maria Souza ", now=NOW)
    assert session.title == "Maria Souza - 05/03/2024 14:07"
    assert session.patient_name == "Maria Souza"
    assert session.status == SessionStatus.IDLE
    assert session.key.startswith("draft-")
    assert session.id is None


def test_lifecycle() -> None:
    session = new_session()
    session.begin("session-1", at=NOW)
    assert session.status == SessionStatus.RECORDING
    assert session.started_at == NOW
    assert session.updated_at is not None

    session.append("  Paciente relata dor. ")
    assert not session.append("   ")
    session.pause(elapsed=12.4)
    with pytest.raises(InvalidStateError):
        session.append("perdido")
    session.resume()
    session.append("Sem febre.")
    session.complete(elapsed=20.9, at=NOW + datetime.timedelta(seconds=25))

    assert session.is_finished
    assert session.transcript == "Paciente relata dor. Sem febre."
    assert session.elapsed_seconds == 20.9
    assert session.duration == "00:00:20"
    assert session.ended_at == NOW + datetime.timedelta(seconds=25)


def test_invalid_transitions() -> None:
    session = new_session()
    with pytest.raises(InvalidStateError):
        session.pause(elapsed=0)
    with pytest.raises(InvalidStateError):
        session.complete(elapsed=0, at=NOW)

    session.begin("session-1", at=NOW)
    with pytest.raises(InvalidStateError):
        session.begin("session-2", at=NOW)
    with pytest.raises(InvalidStateError):
        session.resume()
    with pytest.raises(InvalidStateError):
        session.retitle("Outro")

    session.complete(elapsed=1, at=NOW)
    with pytest.raises(InvalidStateError):
        session.resume()


def test_elapsed_never_goes_backwards() -> None:
    session = new_session()
    session.track(10)
    session.track(4)
    assert session.elapsed_seconds == 10


def test_identity_fields_are_write_once() -> None:
    session = new_session()
    session.begin("session-1", at=NOW)
    with pytest.raises(AttributeError):
        session.id = "session-2"
    with pytest.raises(AttributeError):
        session.patient_id = "p2"
    with pytest.raises(ValueError):
        session.title = None  # type: ignore[assignment]


def test_retitle_before_start() -> None:
    session = new_session()
    session.retitle("  Retorno  ")
    assert session.title == "Retorno"
    with pytest.raises(ValidationError):
        session.retitle("")


def test_dumps_and_unknown_fields() -> None:
    session = new_session()
    data = session.dumps()
    assert data["patient_id"] == "p1"
    assert data["status"] == SessionStatus.IDLE
    with pytest.raises(TypeError):
        RecordingSession(patient_id="p1", unknown="x")
