from __future__ import annotations

import typing as t

from consulta.exceptions import ConfigurationError
from consulta.exceptions import RequiredModuleNotFoundError

if t.TYPE_CHECKING:
    from consulta.config import Config
    from consulta.lib.capture import CaptureDevice
    from consulta.lib.diagnostics import Diagnostics


def make_capture(config: Config, diagnostics: Diagnostics) -> CaptureDevice:
    capture = config.infrastructure.capture
    if capture.backend == "host":
        from consulta.lib.capture import HostCaptureDevice

        return HostCaptureDevice()
    if capture.backend == "pyaudio":
        try:
            from consulta.lib.capture.pyaudio import PyAudioCapture
            from consulta.lib.capture.pyaudio import PyAudioCaptureConfig
        except ImportError as e:
            raise RequiredModuleNotFoundError(
                "pyaudio",
                message="`pyaudio` module is required for the 'pyaudio' capture backend. "
                "Please install it using `pip install consulta[audio]`.",
            ) from e

        return PyAudioCapture(
            PyAudioCaptureConfig(
                format=capture.format,
                channels=capture.channels,
                rate=capture.rate,
                chunk=capture.chunk,
            ),
            diagnostics=diagnostics,
        )

    raise ConfigurationError(
        config_key="infrastructure.capture.backend",
        reason=f"unsupported backend {capture.backend!r}",
    )
