from __future__ import annotations

import asyncio as aio
import collections
import errno
import typing as t

import pyaudio

from consulta.exceptions import DeviceError
from consulta.helper.mixin import AsyncContextMixin
from consulta.helper.mixin import LoggingMixin
from consulta.lib.capture import CaptureDevice
from consulta.lib.capture import CaptureHandle
from consulta.lib.capture import InputDevice
from consulta.valueobj.permission import PermissionState

if t.TYPE_CHECKING:
    from consulta.lib.diagnostics import Diagnostics

FORMATS: dict[str, int] = {
    "float32": pyaudio.paFloat32,
    "int32": pyaudio.paInt32,
    "int16": pyaudio.paInt16,
    "int8": pyaudio.paInt8,
    "uint8": pyaudio.paUInt8,
}


class PyAudioCaptureConfig(t.NamedTuple):
    """Stream parameters.

    Attributes:
        format: Sample format name, one of `FORMATS`.
        channels: Number of audio channels (1=mono, 2=stereo).
        rate: Sample rate in Hz.
        chunk: Number of frames per buffer.
        buffer_chunks: Number of chunks kept for the recognition engine.
    """

    format: str = "int16"
    channels: int = 1
    rate: int = 16000
    chunk: int = 1024
    buffer_chunks: int = 256


class PyAudioCaptureHandle(CaptureHandle):
    """An open PortAudio input stream.

    Captured chunks are kept in a bounded buffer that a recognition engine
    drains with `read()`. The PortAudio callback runs on its own thread.
    """

    def __init__(self, device_id: str, *, buffer_chunks: int) -> None:
        super().__init__(device_id)
        self._stream: pyaudio.Stream | None = None
        self._chunks: collections.deque[bytes] = collections.deque(maxlen=buffer_chunks)

    def attach(self, stream: pyaudio.Stream) -> None:
        self._stream = stream

    def read(self) -> bytes:
        """Take every buffered chunk, oldest first."""
        chunks: list[bytes] = []
        while self._chunks:
            chunks.append(self._chunks.popleft())
        return b"".join(chunks)

    def callback(
        self,
        in_data: bytes | None,
        _frame_count: int,
        _time_info: t.Mapping[str, float],
        _status_flags: int,
    ) -> tuple[None, int]:
        if in_data:
            self._chunks.append(in_data)
        return None, pyaudio.paContinue

    async def _release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return

        def _close() -> None:
            if stream.is_active():
                stream.stop_stream()
            stream.close()

        await aio.to_thread(_close)
        self._chunks.clear()


class PyAudioCapture(LoggingMixin, AsyncContextMixin, CaptureDevice):
    """Capture device backed by PortAudio through PyAudio.

    Device ids are PortAudio device indexes rendered as strings. Permission
    is reported as denied after the system refused to open a stream for
    lack of rights, as granted while input devices are visible, and as
    prompt otherwise.

    Args:
        config: Stream parameters.
        diagnostics: Diagnostics to log through.

    Example:
        ```python
        async with PyAudioCapture() as capture:
            devices = await capture.list_devices()
            async with await capture.acquire(devices[0].id) as handle:
                pcm = handle.read()
        ```
    """

    __logtag__ = "consulta.lib.capture.pyaudio"

    def __init__(
        self,
        config: PyAudioCaptureConfig | None = None,
        *,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        super().__init__(diagnostics)
        self.config = config or PyAudioCaptureConfig()
        self._audio: pyaudio.PyAudio | None = None
        self._denied = False

    async def init(self) -> None:
        if self._audio is None:
            self._audio = await aio.to_thread(pyaudio.PyAudio)
            self.logger.info("Audio system initialized")

    async def close(self) -> None:
        if self._audio is not None:
            audio, self._audio = self._audio, None
            await aio.to_thread(audio.terminate)
            self.logger.info("Audio system closed")

    async def acquire(self, device_id: str, /) -> CaptureHandle:
        audio = await self._require_audio()

        try:
            index = int(device_id)
        except ValueError as e:
            raise DeviceError(device_id=device_id, reason="invalid device index") from e

        handle = PyAudioCaptureHandle(device_id, buffer_chunks=self.config.buffer_chunks)

        def _open() -> pyaudio.Stream:
            return audio.open(
                format=FORMATS[self.config.format],
                channels=self.config.channels,
                rate=self.config.rate,
                input=True,
                frames_per_buffer=self.config.chunk,
                input_device_index=index,
                stream_callback=handle.callback,
                start=False,
            )

        try:
            stream = await aio.to_thread(_open)
            handle.attach(stream)
            await aio.to_thread(stream.start_stream)
        except (OSError, ValueError) as e:
            if getattr(e, "errno", None) in (errno.EACCES, errno.EPERM):
                self._denied = True
            await handle.release()
            self.logger.warning(f"Failed to open input device {device_id}: {e}")
            raise DeviceError(device_id=device_id, reason=str(e)) from e

        self._denied = False
        self.logger.info(f"Acquired input device {device_id}")
        return handle

    async def list_devices(self) -> list[InputDevice]:
        audio = await self._require_audio()

        def _list() -> list[InputDevice]:
            devices: list[InputDevice] = []
            for i in range(audio.get_device_count()):
                info = audio.get_device_info_by_index(i)
                if int(info["maxInputChannels"]) > 0:
                    devices.append(
                        InputDevice(
                            id=str(i),
                            name=str(info["name"]),
                            channels=int(info["maxInputChannels"]),
                            default_rate=float(info["defaultSampleRate"]),
                        )
                    )
            return devices

        return await aio.to_thread(_list)

    async def _require_audio(self) -> pyaudio.PyAudio:
        await self.init()
        if self._audio is None:
            raise DeviceError("Audio system is not available")
        return self._audio

    async def permission(self) -> PermissionState:
        if self._denied:
            return PermissionState.DENIED
        devices = await self.list_devices()
        return PermissionState.GRANTED if devices else PermissionState.PROMPT
