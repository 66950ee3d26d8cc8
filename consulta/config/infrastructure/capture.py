from __future__ import annotations

import typing as t

from pydantic import Field

from consulta.helper.settings import BaseModel


class CaptureConfig(BaseModel):
    backend: t.Literal["pyaudio", "host"] = Field(
        default="pyaudio",
        description="Audio capture backend. 'host' leaves the microphone to the UI shell, "
        "which reports devices and permission state.",
    )

    format: t.Literal["float32", "int32", "int16", "int8", "uint8"] = Field(
        default="int16",
        description="Audio sample format.",
    )

    channels: int = Field(
        default=1,
        ge=1,
        le=8,
        description="Number of audio channels.",
    )

    rate: int = Field(
        default=16000,
        ge=8000,
        le=192000,
        description="Sampling rate in Hz.",
    )

    chunk: int = Field(
        default=1024,
        ge=256,
        le=8192,
        description="Number of frames per buffer.",
    )
