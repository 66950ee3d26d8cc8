from __future__ import annotations

import pathlib

import pydantic
import pytest

from consulta.config import Config
from consulta.config.core.logging import LoggingTarget
from consulta.config.core.logging import Rotation
from consulta.config.core.logging import SizeBasedRotation
from consulta.config.core.logging import TimeBasedRotation
from consulta.config.core.recording import RecordingConfig
from consulta.service.recording.types import RecordingControllerConfig


def test_defaults() -> None:
    config = Config()
    recording = config.core.recording
    assert recording.language == "pt-BR"
    assert recording.autosave_interval == 30.0
    assert recording.max_restart_attempts == 3
    assert recording.final_save_retry.attempts == 8
    assert config.infrastructure.persistence.backend == "sqlite"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONSULTA__CORE__RECORDING__AUTOSAVE_INTERVAL", "5")
    monkeypatch.setenv("CONSULTA__INFRASTRUCTURE__PERSISTENCE__BACKEND", "memory")
    monkeypatch.setenv("CONSULTA__INFRASTRUCTURE__CAPTURE__BACKEND", "host")

    config = Config()
    assert config.core.recording.autosave_interval == 5.0
    assert config.infrastructure.persistence.backend == "memory"
    assert config.infrastructure.capture.backend == "host"


def test_yaml_round_trip(tmp_path: pathlib.Path) -> None:
    config = Config(
        core={"recording": {"language": "en-US", "autosave_retry": {"attempts": 5}}},
        infrastructure={"sqlite": {"uri": "sqlite+aiosqlite:///:memory:"}},
    )
    path = tmp_path / "consulta.yml"
    config.to_yaml(path)

    loaded = Config.from_yaml(path)
    assert loaded.core.recording.language == "en-US"
    assert loaded.core.recording.autosave_retry.attempts == 5
    assert loaded.infrastructure.sqlite.uri == "sqlite+aiosqlite:///:memory:"


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(pydantic.ValidationError):
        RecordingConfig(autosave_interval=0)
    with pytest.raises(pydantic.ValidationError):
        Rotation(size_based=SizeBasedRotation(), time_based=TimeBasedRotation())
    with pytest.raises(pydantic.ValidationError):
        LoggingTarget(loglevel="verbose")


def test_controller_config_from_recording_config() -> None:
    recording = RecordingConfig(autosave_interval=10, auto_pause_on_hidden=False)
    controller = RecordingControllerConfig.from_config(recording)
    assert controller.autosave_interval == 10
    assert not controller.auto_pause_on_hidden
    assert controller.final_save_retry == recording.final_save_retry
