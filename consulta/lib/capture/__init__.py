from __future__ import annotations

import abc
import typing as t

from consulta.exceptions import DeviceError
from consulta.helper.mixin import AsyncContextMixin
from consulta.valueobj.permission import PermissionState


class InputDevice(t.NamedTuple):
    """An audio input the operator can pick.

    Attributes:
        id: Identifier passed back to `CaptureDevice.acquire()`.
        name: Human readable device name.
        channels: Maximum number of input channels.
        default_rate: Default sample rate in Hz.
    """

    id: str
    name: str
    channels: int = 1
    default_rate: float = 16000.0


class CaptureHandle(AsyncContextMixin, abc.ABC):
    """Exclusive hold on an input device.

    `release()` is idempotent, and leaving the async context releases the
    handle, so it can be registered on any exit path without tracking
    whether it was already released.
    """

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        await self._release()

    async def close(self) -> None:
        await self.release()

    @abc.abstractmethod
    async def _release(self) -> None: ...

    def __repr__(self) -> str:
        return f"CAPTURE <{self.device_id}, released={self._released}>"


class CaptureDevice(abc.ABC):
    """Source of capture handles and of the microphone inventory."""

    @abc.abstractmethod
    async def acquire(self, device_id: str, /) -> CaptureHandle:
        """Take exclusive hold of an input device.

        Raises:
            DeviceError: If the device is missing, busy, or permission is
                denied.
        """

    @abc.abstractmethod
    async def list_devices(self) -> list[InputDevice]: ...

    @abc.abstractmethod
    async def permission(self) -> PermissionState: ...


class HostCaptureHandle(CaptureHandle):
    async def _release(self) -> None:
        return None


class HostCaptureDevice(CaptureDevice):
    """Capture device driven by the UI shell.

    The shell owns the actual microphone (for instance a browser surface)
    and reports what it sees through `update()`. Acquiring only checks that
    the shell reported the device and did not report a denied permission.

    Example:
        ```python
        capture = HostCaptureDevice()
        capture.update(
            devices=[InputDevice("mic1", "Microfone USB")],
            permission=PermissionState.GRANTED,
        )
        async with await capture.acquire("mic1"):
            ...
        ```
    """

    def __init__(
        self,
        devices: t.Iterable[InputDevice] = (),
        permission: PermissionState = PermissionState.PROMPT,
    ) -> None:
        self._devices = list(devices)
        self._permission = permission

    def update(
        self,
        *,
        devices: t.Iterable[InputDevice] | None = None,
        permission: PermissionState | None = None,
    ) -> None:
        if devices is not None:
            self._devices = list(devices)
        if permission is not None:
            self._permission = permission

    async def acquire(self, device_id: str, /) -> CaptureHandle:
        if self._permission == PermissionState.DENIED:
            raise DeviceError(device_id=device_id, reason="permission denied")
        if device_id not in {d.id for d in self._devices}:
            raise DeviceError(device_id=device_id, reason="device not found")
        return HostCaptureHandle(device_id)

    async def list_devices(self) -> list[InputDevice]:
        return list(self._devices)

    async def permission(self) -> PermissionState:
        return self._permission
