from __future__ import annotations

import typing as t

from consulta.config.core.recording import RetryConfig

if t.TYPE_CHECKING:
    from consulta.config.core.recording import RecordingConfig


class RecordingControllerConfig(t.NamedTuple):
    """Tunables of the recording controller.

    Attributes:
        language: Language tag the recognition engine is created with.
        autosave_interval: Seconds between autosaves while recording.
        max_restart_attempts: Immediate engine restarts after an
            unrequested end.
        auto_pause_on_hidden: Pause when the host surface is hidden.
        autosave_retry: Retry policy for autosave, creation and status
            updates.
        final_save_retry: Retry policy for the final write on stop.
    """

    language: str = "pt-BR"
    autosave_interval: float = 30.0
    max_restart_attempts: int = 3
    auto_pause_on_hidden: bool = True
    autosave_retry: RetryConfig = RetryConfig()
    final_save_retry: RetryConfig = RetryConfig(attempts=8, multiplier=0.5, max_wait=10.0)

    @classmethod
    def from_config(cls, config: RecordingConfig) -> RecordingControllerConfig:
        return cls(
            language=config.language,
            autosave_interval=config.autosave_interval,
            max_restart_attempts=config.max_restart_attempts,
            auto_pause_on_hidden=config.auto_pause_on_hidden,
            autosave_retry=config.autosave_retry,
            final_save_retry=config.final_save_retry,
        )


class TranscriptUpdate(t.NamedTuple):
    """What a presentation adapter renders after every recognition event.

    Attributes:
        interim: Text still being recognized. Empty once settled.
        transcript: The full transcript so far.
        elapsed: Seconds spent recording.
    """

    interim: str
    transcript: str
    elapsed: float
