from __future__ import annotations

import pytest

from consulta.exceptions import DeviceError
from consulta.lib.capture import HostCaptureDevice
from consulta.lib.capture import InputDevice
from consulta.valueobj.permission import PermissionState


async def test_host_capture_follows_shell_reports() -> None:
    capture = HostCaptureDevice()
    assert await capture.list_devices() == []
    assert await capture.permission() == PermissionState.PROMPT

    capture.update(devices=[InputDevice("mic1", "Microfone USB")], permission=PermissionState.GRANTED)
    handle = await capture.acquire("mic1")
    async with handle:
        assert not handle.released
    assert handle.released
    await handle.release()


async def test_host_capture_refuses_unknown_or_denied_devices() -> None:
    capture = HostCaptureDevice(devices=[InputDevice("mic1", "Microfone USB")])
    with pytest.raises(DeviceError) as excinfo:
        await capture.acquire("mic9")
    assert excinfo.value.reason == "device not found"

    capture.update(permission=PermissionState.DENIED)
    with pytest.raises(DeviceError) as excinfo:
        await capture.acquire("mic1")
    assert excinfo.value.device_id == "mic1"
