from __future__ import annotations

import typing as t

from consulta.exceptions import DeviceError
from consulta.helper.mixin import LoggingMixin
from consulta.lib.capture import CaptureDevice
from consulta.lib.capture import InputDevice
from consulta.lib.recognition import RecognitionProvider
from consulta.valueobj.permission import PermissionState

if t.TYPE_CHECKING:
    from consulta.lib.diagnostics import Diagnostics


class CapabilityReport(t.NamedTuple):
    """What the runtime offers for recording a consultation.

    Attributes:
        recognition: Whether a speech recognition capability is present.
        microphone: Whether at least one input device is visible.
        permission: Microphone permission state.
        devices: Visible input devices.
    """

    recognition: bool
    microphone: bool
    permission: PermissionState
    devices: list[InputDevice]

    @property
    def supported(self) -> bool:
        return self.recognition and self.microphone and self.permission != PermissionState.DENIED


class CapabilityProbe(LoggingMixin):
    """Checks whether a consultation can be recorded on this runtime.

    Probing never raises: a failing capture backend is reported as no
    microphone, a failing recognition provider as no recognition.
    """

    __logtag__ = "consulta.lib.capability"

    def __init__(
        self,
        capture: CaptureDevice,
        recognition: RecognitionProvider,
        *,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        super().__init__(diagnostics)
        self.capture = capture
        self.recognition = recognition

    async def probe(self) -> CapabilityReport:
        try:
            recognition = await self.recognition.available()
        except Exception as e:
            self.logger.warning(f"Recognition capability check failed: {e!r}")
            recognition = False

        try:
            devices = await self.capture.list_devices()
            permission = await self.capture.permission()
        except (DeviceError, OSError) as e:
            self.logger.warning(f"Microphone check failed: {e!r}")
            devices, permission = [], PermissionState.PROMPT

        report = CapabilityReport(
            recognition=recognition,
            microphone=bool(devices),
            permission=permission,
            devices=devices,
        )
        self.logger.info(
            "Capability probe finished",
            recognition=report.recognition,
            microphone=report.microphone,
            permission=report.permission.value,
            devices=len(report.devices),
        )
        return report
