from __future__ import annotations

import typing as t

from pydantic import Field

from consulta.config.infrastructure.capture import CaptureConfig
from consulta.config.infrastructure.database import SQLiteConfig
from consulta.helper.settings import BaseModel


class PersistenceConfig(BaseModel):
    backend: t.Literal["memory", "sqlite"] = Field(
        default="sqlite",
        description="Session persistence backend.",
    )


class InfrastructureConfig(BaseModel):
    persistence: PersistenceConfig = Field(
        default_factory=PersistenceConfig,
        description="Session persistence configuration",
    )

    sqlite: SQLiteConfig = Field(
        default_factory=SQLiteConfig,
        description="SQLite database configuration",
    )

    capture: CaptureConfig = Field(
        default_factory=CaptureConfig,
        description="Audio capture configuration",
    )
