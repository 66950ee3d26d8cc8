from __future__ import annotations

from pydantic import Field

from consulta.helper.settings import BaseModel


class RetryConfig(BaseModel):
    attempts: int = Field(
        default=3,
        ge=1,
        le=50,
        description="Maximum number of attempts for a single persistence call.",
    )

    multiplier: float = Field(
        default=0.5,
        ge=0,
        description="Multiplier (seconds) of the exponential backoff between attempts.",
    )

    max_wait: float = Field(
        default=5.0,
        ge=0,
        description="Upper bound (seconds) of a single backoff wait.",
    )


class RecordingConfig(BaseModel):
    language: str = Field(
        default="pt-BR",
        min_length=2,
        description="Language tag the recognition engine is bound to.",
    )

    autosave_interval: float = Field(
        default=30.0,
        gt=0,
        description="Seconds between transcript autosaves while recording. "
        "Lower values shrink the data-loss window at the cost of more writes.",
    )

    max_restart_attempts: int = Field(
        default=3,
        ge=0,
        le=20,
        description="Immediate restart attempts after the recognition engine ends on its own.",
    )

    visibility_debounce: float = Field(
        default=0.25,
        ge=0,
        description="Seconds a visibility change must settle before an edge is published.",
    )

    auto_pause_on_hidden: bool = Field(
        default=True,
        description="Pause recording automatically when the host surface is hidden.",
    )

    autosave_retry: RetryConfig = Field(
        default_factory=RetryConfig,
        description="Retry policy for autosave and status updates.",
    )

    final_save_retry: RetryConfig = Field(
        default_factory=lambda: RetryConfig(attempts=8, multiplier=0.5, max_wait=10.0),
        description="Retry policy for the final save on stop.",
    )

    diagnostics_capacity: int = Field(
        default=1000,
        ge=10,
        description="Number of diagnostic entries kept in memory per session owner.",
    )
