from __future__ import annotations

from consulta.config import Config
from consulta.lib.capture import CaptureDevice
from consulta.lib.diagnostics import Diagnostics
from consulta.lib.notification import Notifier
from consulta.lib.persistence import SessionGateway
from consulta.lib.recognition import RecognitionProvider
from consulta.lib.visibility import VisibilityMonitor
from consulta.service.recording import RecordingController
from consulta.service.recording.types import RecordingControllerConfig


def make_recording_controller(
    config: Config,
    diagnostics: Diagnostics,
    gateway: SessionGateway,
    capture: CaptureDevice,
    recognition: RecognitionProvider,
    notifier: Notifier,
    visibility: VisibilityMonitor,
) -> RecordingController:
    return RecordingController(
        gateway=gateway,
        capture=capture,
        recognition=recognition,
        notifier=notifier,
        visibility=visibility,
        config=RecordingControllerConfig.from_config(config.core.recording),
        diagnostics=diagnostics,
    )
