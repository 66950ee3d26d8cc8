from __future__ import annotations

from pydantic import Field

from consulta.config.core.logging import LoggingConfig
from consulta.config.core.recording import RecordingConfig
from consulta.helper.settings import BaseModel


class CoreConfig(BaseModel):
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    recording: RecordingConfig = Field(
        default_factory=RecordingConfig,
        description="Recording controller configuration",
    )
