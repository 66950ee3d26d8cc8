from __future__ import annotations

import asyncio
import typing as t

import pytest

from consulta.config.core.recording import RetryConfig
from consulta.exceptions import DeviceError
from consulta.exceptions import PersistenceError
from consulta.lib.capture import CaptureDevice
from consulta.lib.capture import CaptureHandle
from consulta.lib.capture import InputDevice
from consulta.lib.diagnostics import Diagnostics
from consulta.lib.notification import QueueNotifier
from consulta.lib.persistence import SessionDraft
from consulta.lib.persistence import SessionPatch
from consulta.lib.persistence.memory import InMemorySessionGateway
from consulta.lib.recognition import RecognitionEngine
from consulta.lib.recognition import RecognitionError
from consulta.lib.recognition import RecognitionProvider
from consulta.lib.visibility import VisibilityMonitor
from consulta.service.recording import RecordingController
from consulta.service.recording.types import RecordingControllerConfig
from consulta.valueobj.permission import PermissionState

NO_WAIT = RetryConfig(attempts=3, multiplier=0, max_wait=0)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEngine(RecognitionEngine):
    """Engine that behaves like a browser speech engine: it emits `end`
    whenever it stops."""

    def __init__(self, *, fail_starts: int = 0) -> None:
        super().__init__()
        self.fail_starts = fail_starts
        self.start_calls = 0
        self.stop_calls = 0
        self.stop_delay = 0.0
        self.running = False

    async def start(self) -> None:
        self.start_calls += 1
        if self.fail_starts > 0:
            self.fail_starts -= 1
            raise RecognitionError(error_code="audio-capture")
        self.running = True

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_delay:
            await asyncio.sleep(self.stop_delay)
        self.running = False
        self.emit({"type": "end"})

    def final(self, text: str) -> None:
        self.emit({"type": "result", "results": [{"transcript": text, "isFinal": True}]})

    def interim(self, text: str) -> None:
        self.emit({"type": "result", "results": [{"transcript": text, "isFinal": False}]})

    def error(self, code: str, message: str = "") -> None:
        self.emit({"type": "error", "error": code, "message": message})

    def end(self) -> None:
        self.running = False
        self.emit({"type": "end"})


class FakeProvider(RecognitionProvider):
    def __init__(self) -> None:
        self.engines: list[FakeEngine] = []
        self.fail_starts = 0
        self.is_available = True

    async def available(self) -> bool:
        return self.is_available

    def create(self, device_id: str, language: str) -> RecognitionEngine:
        engine = FakeEngine(fail_starts=self.fail_starts)
        self.engines.append(engine)
        return engine

    @property
    def engine(self) -> FakeEngine:
        return self.engines[-1]


class FakeHandle(CaptureHandle):
    def __init__(self, device_id: str) -> None:
        super().__init__(device_id)
        self.release_calls = 0

    async def _release(self) -> None:
        self.release_calls += 1


class FakeCapture(CaptureDevice):
    def __init__(self) -> None:
        self.devices = [InputDevice("mic1", "Microfone USB"), InputDevice("mic2", "Headset")]
        self.denied: set[str] = set()
        self.state = PermissionState.GRANTED
        self.handles: list[FakeHandle] = []

    async def acquire(self, device_id: str, /) -> CaptureHandle:
        if device_id in self.denied:
            raise DeviceError(device_id=device_id, reason="permission denied")
        handle = FakeHandle(device_id)
        self.handles.append(handle)
        return handle

    async def list_devices(self) -> list[InputDevice]:
        return list(self.devices)

    async def permission(self) -> PermissionState:
        return self.state


class FlakyGateway(InMemorySessionGateway):
    """In-memory gateway that fails the next N creates or updates, and can
    be slowed down by `delay` seconds per call."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_creates = 0
        self.fail_updates = 0
        self.delay = 0.0

    async def create_session(self, draft: SessionDraft, /) -> str:
        await asyncio.sleep(self.delay)
        if self.fail_creates > 0:
            self.fail_creates -= 1
            raise PersistenceError(operation="create")
        return await super().create_session(draft)

    async def update_session(self, session_id: str, patch: SessionPatch, /) -> bool:
        await asyncio.sleep(self.delay)
        if self.fail_updates > 0:
            self.fail_updates -= 1
            raise PersistenceError(operation="update", session_id=session_id)
        return await super().update_session(session_id, patch)


async def settle(rounds: int = 10) -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics(capacity=500)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def capture() -> FakeCapture:
    return FakeCapture()


@pytest.fixture
def gateway() -> FlakyGateway:
    return FlakyGateway()


@pytest.fixture
def notifier() -> QueueNotifier:
    return QueueNotifier()


@pytest.fixture
def monitor(diagnostics: Diagnostics) -> VisibilityMonitor:
    return VisibilityMonitor(debounce=0, diagnostics=diagnostics)


@pytest.fixture
def controller_config() -> RecordingControllerConfig:
    return RecordingControllerConfig(
        autosave_interval=30.0,
        max_restart_attempts=3,
        autosave_retry=NO_WAIT,
        final_save_retry=RetryConfig(attempts=5, multiplier=0, max_wait=0),
    )


@pytest.fixture
async def controller(
    gateway: FlakyGateway,
    capture: FakeCapture,
    provider: FakeProvider,
    notifier: QueueNotifier,
    monitor: VisibilityMonitor,
    controller_config: RecordingControllerConfig,
    clock: FakeClock,
    diagnostics: Diagnostics,
) -> t.AsyncIterator[RecordingController]:
    controller = RecordingController(
        gateway=gateway,
        capture=capture,
        recognition=provider,
        notifier=notifier,
        visibility=monitor,
        config=controller_config,
        clock=clock,
        diagnostics=diagnostics,
    )
    yield controller
    await controller.close()
    monitor.close()
