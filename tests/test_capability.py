from __future__ import annotations

from conftest import FakeCapture
from conftest import FakeProvider
from consulta.lib.capability import CapabilityProbe
from consulta.valueobj.permission import PermissionState


async def test_supported_runtime() -> None:
    report = await CapabilityProbe(FakeCapture(), FakeProvider()).probe()
    assert report.supported
    assert report.microphone
    assert [d.id for d in report.devices] == ["mic1", "mic2"]


async def test_missing_recognition() -> None:
    provider = FakeProvider()
    provider.is_available = False
    report = await CapabilityProbe(FakeCapture(), provider).probe()
    assert not report.recognition
    assert not report.supported


async def test_denied_permission_and_no_devices() -> None:
    capture = FakeCapture()
    capture.state = PermissionState.DENIED
    report = await CapabilityProbe(capture, FakeProvider()).probe()
    assert report.microphone
    assert not report.supported

    capture.devices = []
    capture.state = PermissionState.PROMPT
    report = await CapabilityProbe(capture, FakeProvider()).probe()
    assert not report.microphone
    assert not report.supported


async def test_failing_backends_are_reported_not_raised() -> None:
    class BrokenProvider(FakeProvider):
        async def available(self) -> bool:
            raise RuntimeError("no engine")

    class BrokenCapture(FakeCapture):
        async def list_devices(self):
            raise OSError("no audio subsystem")

    report = await CapabilityProbe(BrokenCapture(), BrokenProvider()).probe()
    assert not report.recognition
    assert not report.microphone
    assert report.permission == PermissionState.PROMPT
