from __future__ import annotations

import asyncio as aio
import contextlib
import time
import typing as t

from consulta import utils
from consulta.entity.session import RecordingSession
from consulta.exceptions import DeviceError
from consulta.exceptions import InvalidStateError
from consulta.exceptions import PersistenceError
from consulta.helper.mixin import AsyncContextMixin
from consulta.lib.persistence import RETRYABLE
from consulta.lib.persistence import SessionDraft
from consulta.lib.persistence import SessionPatch
from consulta.lib.persistence import call_with_retry
from consulta.lib.recognition import Fault
from consulta.lib.recognition import Final
from consulta.lib.recognition import Interim
from consulta.lib.recognition import RecognitionError
from consulta.lib.recognition.adapter import RecognitionAdapter
from consulta.lib.timer import PeriodicTask
from consulta.lib.timer import SessionTimer
from consulta.lib.visibility import VisibilityEdge
from consulta.service import BaseService
from consulta.service.decorators import log_call
from consulta.service.recording.const import ErrorMessages
from consulta.service.recording.const import Messages
from consulta.service.recording.exceptions import FinalSaveError
from consulta.service.recording.exceptions import RecordingError
from consulta.service.recording.types import RecordingControllerConfig
from consulta.service.recording.types import TranscriptUpdate
from consulta.valueobj.notification import NotificationLevel
from consulta.valueobj.session import ControllerState
from consulta.valueobj.session import PauseOrigin
from consulta.valueobj.session import SessionStatus

if t.TYPE_CHECKING:
    from consulta.config.core.recording import RetryConfig
    from consulta.lib.capture import CaptureDevice
    from consulta.lib.capture import CaptureHandle
    from consulta.lib.diagnostics import Diagnostics
    from consulta.lib.notification import Notifier
    from consulta.lib.persistence import SessionGateway
    from consulta.lib.recognition import RecognitionProvider
    from consulta.lib.visibility import VisibilityMonitor

TranscriptListener: t.TypeAlias = t.Callable[[TranscriptUpdate], None]


class RecordingController(BaseService, AsyncContextMixin):
    """Drives one consultation at a time from configuration to the saved
    record.

    The controller owns the capture handle, the recognition adapter, the
    session timer and the autosave task of the current session. Operations
    that change state are serialized, so a double-clicked start creates a
    single record.

    States: IDLE -> CONFIGURING -> RECORDING <-> PAUSED -> COMPLETED. After
    COMPLETED the controller may be configured again.

    Args:
        gateway: Where session records are written.
        capture: Source of capture handles.
        recognition: Speech recognition capability.
        notifier: Operator notification surface.
        visibility: Monitor whose edges pause and resume recording.
        config: Controller tunables.
        clock: Monotonic clock for the session timer.
        diagnostics: Diagnostics to log through.

    Example:
        ```python
        async with RecordingController(
            gateway=gateway,
            capture=capture,
            recognition=provider,
            notifier=notifier,
            visibility=monitor,
        ) as controller:
            await controller.configure("p1", "mic1", "Consulta A")
            await controller.start()
            ...
            await controller.pause()
            await controller.resume()
            session = await controller.stop()
        ```
    """

    def __init__(
        self,
        *,
        gateway: SessionGateway,
        capture: CaptureDevice,
        recognition: RecognitionProvider,
        notifier: Notifier,
        visibility: VisibilityMonitor | None = None,
        config: RecordingControllerConfig | None = None,
        clock: t.Callable[[], float] = time.monotonic,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        super().__init__(diagnostics)
        self.gateway = gateway
        self.capture = capture
        self.recognition = recognition
        self.notifier = notifier
        self.config = config or RecordingControllerConfig()

        self._lock = aio.Lock()
        self._timer = SessionTimer(clock)
        self._state = ControllerState.IDLE
        self._session: RecordingSession | None = None
        self._pause_origin: PauseOrigin | None = None
        self._interim = ""
        self._last_flushed = ""
        self._save_pending = False
        self._closed = False

        self._resources: contextlib.AsyncExitStack | None = None
        self._handle: CaptureHandle | None = None
        self._adapter: RecognitionAdapter | None = None
        self._autosave: PeriodicTask | None = None
        self._listeners: list[TranscriptListener] = []

        self.visibility = visibility
        self._unsubscribe_visibility: t.Callable[[], None] | None = None
        if visibility is not None:
            self._unsubscribe_visibility = visibility.subscribe(self._on_visibility)

    # Views

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def session(self) -> RecordingSession | None:
        return self._session

    @property
    def pause_origin(self) -> PauseOrigin | None:
        return self._pause_origin

    @property
    def interim(self) -> str:
        return self._interim

    @property
    def save_pending(self) -> bool:
        return self._save_pending

    @property
    def closed(self) -> bool:
        return self._closed

    def elapsed(self) -> float:
        return self._timer.elapsed()

    def subscribe(self, listener: TranscriptListener) -> t.Callable[[], None]:
        """Receive a `TranscriptUpdate` after every recognition result and
        state change, in order.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Operations

    @log_call
    async def configure(
        self,
        patient_id: str,
        device_id: str,
        title: str | None = None,
        *,
        patient_name: str | None = None,
        user_id: str | None = None,
    ) -> RecordingSession:
        """Prepare a new session. Nothing is written to the gateway.

        Raises:
            ValidationError: If the patient or device is missing, or no title
                is given and none can be derived from the patient name.
            InvalidStateError: If a session is running, or the previous one
                still has an unsaved final write.
        """
        async with self._lock:
            self._ensure_open()
            if self._state not in (
                ControllerState.IDLE,
                ControllerState.CONFIGURING,
                ControllerState.COMPLETED,
            ):
                raise InvalidStateError(operation="configure", state=str(self._state))
            if self._save_pending:
                raise InvalidStateError(
                    "The previous session has not been saved yet",
                    operation="configure",
                    state="save pending",
                )
            if self._adapter is not None or self._handle is not None:
                raise InvalidStateError(
                    "The previous session still holds the recognition engine",
                    operation="configure",
                    state=str(self._state),
                )

            session = RecordingSession.new(
                patient_id=patient_id,
                device_id=device_id,
                title=title,
                patient_name=patient_name,
                user_id=user_id,
            )
            self._session = session
            self._state = ControllerState.CONFIGURING
            self._pause_origin = None
            self._interim = ""
            self._last_flushed = ""
            self._timer.reset()
            self.logger.info(
                f"Configured session {session.key}",
                patient_id=session.patient_id,
                device_id=session.device_id,
            )
            return session

    @log_call
    async def retitle(self, title: str) -> None:
        """Change the title of the configured session.

        Raises:
            ValidationError: If the title is empty.
            InvalidStateError: If the session already started.
        """
        async with self._lock:
            self._ensure_open()
            if self._state != ControllerState.CONFIGURING or self._session is None:
                raise InvalidStateError(operation="retitle", state=str(self._state))
            self._session.retitle(title)

    @log_call
    async def start(self) -> None:
        """Acquire the microphone, create the record and start recognizing.

        Does nothing when the session is already recording or paused.

        Raises:
            InvalidStateError: If no session is configured.
            DeviceError: If the microphone cannot be acquired (the session
                stays CONFIGURING) or the recognition engine does not start
                (the session is PAUSED and may be resumed or stopped).
            PersistenceError: If the record could not be created; the
                microphone is released and the session stays CONFIGURING.
        """
        async with self._lock:
            self._ensure_open()
            if self._state in (ControllerState.RECORDING, ControllerState.PAUSED):
                self.logger.debug("Session already started, ignoring start")
                return
            if self._state != ControllerState.CONFIGURING or self._session is None:
                raise InvalidStateError(operation="start", state=str(self._state))

            session = self._session
            resources = contextlib.AsyncExitStack()

            try:
                handle = await self.capture.acquire(session.device_id)
            except DeviceError:
                self._notify(NotificationLevel.ERROR, ErrorMessages.DEVICE_FAILED)
                raise
            resources.push_async_callback(handle.release)

            try:
                engine = self.recognition.create(session.device_id, self.config.language)
            except RecognitionError as e:
                await resources.aclose()
                self._notify(NotificationLevel.ERROR, ErrorMessages.DEVICE_FAILED)
                raise DeviceError(
                    device_id=session.device_id,
                    reason=f"recognition unavailable ({e.error_code})",
                ) from e
            adapter = RecognitionAdapter(
                engine,
                max_restart_attempts=self.config.max_restart_attempts,
                diagnostics=self.diagnostics,
            )
            adapter.listen(self._on_recognition)
            resources.push_async_callback(adapter.close)

            started_at = utils.utcnow()
            draft = SessionDraft(
                key=session.key,
                patient_id=session.patient_id,
                title=session.title,
                started_at=started_at,
                user_id=session.user_id,
                status=SessionStatus.RECORDING,
            )
            try:
                session_id = await self._call(
                    self.gateway.create_session, draft, policy=self.config.autosave_retry
                )
            except PersistenceError:
                await resources.aclose()
                self._notify(NotificationLevel.ERROR, ErrorMessages.CREATE_FAILED)
                raise

            session.begin(session_id, at=started_at)
            self._resources = resources
            self._handle = handle
            self._adapter = adapter
            self._timer.start()
            self._state = ControllerState.RECORDING
            self._pause_origin = None
            self.logger.info(f"Session {session_id} started", session_id=session_id)

            try:
                await adapter.start()
            except RecognitionError as e:
                elapsed = self._timer.pause()
                session.pause(elapsed=elapsed)
                self._state = ControllerState.PAUSED
                self._pause_origin = PauseOrigin.MANUAL
                await self._update_status(SessionStatus.PAUSED)
                self._notify(NotificationLevel.ERROR, ErrorMessages.DEVICE_FAILED)
                self._publish()
                raise DeviceError(
                    device_id=session.device_id,
                    reason=f"recognition engine did not start ({e.error_code})",
                ) from e

            self._start_autosave()
            self._notify(NotificationLevel.SUCCESS, Messages.STARTED)
            self._publish()

    @log_call
    async def pause(self, origin: PauseOrigin = PauseOrigin.MANUAL) -> None:
        """Stop recognizing and freeze the timer. The microphone stays held.

        Pausing a paused session does nothing and keeps the recorded pause
        origin.

        Raises:
            InvalidStateError: If the session is not recording or paused.
        """
        async with self._lock:
            self._ensure_open()
            await self._pause(origin)

    @log_call
    async def resume(self, origin: PauseOrigin = PauseOrigin.MANUAL) -> None:
        """Restart recognition and the timer.

        Resuming a recording session does nothing, and so does a visibility
        resume of a session that was not paused by visibility.

        Raises:
            InvalidStateError: If the session is not paused or recording.
            DeviceError: If the recognition engine does not restart; the
                session stays PAUSED.
        """
        async with self._lock:
            self._ensure_open()
            await self._resume(origin)

    @log_call
    async def stop(self) -> RecordingSession:
        """Finish the session and write the completed record.

        Raises:
            InvalidStateError: If the session is not recording or paused.
            FinalSaveError: If the completed record could not be written. The
                session is COMPLETED in memory; use `retry_save()`.
        """
        async with self._lock:
            self._ensure_open()
            session = self._session
            if (
                self._state not in (ControllerState.RECORDING, ControllerState.PAUSED)
                or session is None
            ):
                raise InvalidStateError(operation="stop", state=str(self._state))

            await self._stop_autosave()
            if self._adapter is not None:
                await self._adapter.stop()
            elapsed = self._timer.pause()
            self._interim = ""
            await self._release_resources()

            session.complete(elapsed=elapsed, at=utils.utcnow())
            self._state = ControllerState.COMPLETED
            self._pause_origin = None
            self._save_pending = True
            self.logger.info(
                f"Session {session.id} completed",
                session_id=session.id,
                duration=session.duration,
            )
            self._publish()

            await self._final_save()
            return session

    @log_call
    async def retry_save(self) -> None:
        """Repeat the final write of a completed session. Does nothing when
        no write is pending.

        Raises:
            FinalSaveError: If the write failed again.
        """
        async with self._lock:
            if not self._save_pending:
                return
            await self._final_save()

    async def close(self) -> None:
        """Release everything the controller holds.

        A session still in progress is not completed; its latest transcript
        is written once more, best effort, so nothing captured is lost. A
        completed session whose final write is still pending gets one last
        attempt; if that fails too, the loss is logged as an error.
        """
        async with self._lock:
            if self._closed:
                return
            self._closed = True

            if self._unsubscribe_visibility is not None:
                self._unsubscribe_visibility()
                self._unsubscribe_visibility = None

            await self._stop_autosave()
            if self._adapter is not None:
                await self._adapter.stop()
            self._timer.pause()
            await self._release_resources()

            session = self._session
            if self._state in (ControllerState.RECORDING, ControllerState.PAUSED) and session:
                self.logger.warning(
                    f"Controller closed with session {session.id} still {self._state}",
                    session_id=session.id,
                )
                session.track(self._timer.elapsed())
                await self._flush(
                    session, status=None, transcript=True, policy=self.config.autosave_retry
                )
            elif self._save_pending and session is not None:
                self.logger.warning(
                    f"Controller closed with unsaved session {session.id}, saving once more",
                    session_id=session.id,
                )
                try:
                    await self._final_save()
                except FinalSaveError as e:
                    self.logger.error(
                        f"Completed session {session.id} could not be saved, "
                        f"transcript of {len(session.transcript)} characters lost: {e}",
                        session_id=session.id,
                    )

            self._listeners.clear()

    # Internals

    def _ensure_open(self) -> None:
        if self._closed:
            raise RecordingError("Recording controller is closed")

    async def _pause(self, origin: PauseOrigin) -> None:
        if self._state == ControllerState.PAUSED:
            self.logger.debug(f"Session already paused ({self._pause_origin}), ignoring pause")
            return
        session, adapter = self._session, self._adapter
        if self._state != ControllerState.RECORDING or session is None or adapter is None:
            raise InvalidStateError(operation="pause", state=str(self._state))

        await self._stop_autosave()
        await adapter.stop()
        elapsed = self._timer.pause()
        session.pause(elapsed=elapsed)
        self._state = ControllerState.PAUSED
        self._pause_origin = origin
        self._interim = ""
        self.logger.info(
            f"Session {session.id} paused ({origin})",
            session_id=session.id,
            elapsed=elapsed,
        )

        await self._update_status(SessionStatus.PAUSED)
        if origin == PauseOrigin.VISIBILITY:
            self._notify(NotificationLevel.WARNING, Messages.AUTO_PAUSED)
        else:
            self._notify(NotificationLevel.SUCCESS, Messages.PAUSED)
        self._publish()

    async def _resume(self, origin: PauseOrigin) -> None:
        if self._state == ControllerState.RECORDING:
            self.logger.debug("Session already recording, ignoring resume")
            return
        session, adapter = self._session, self._adapter
        if self._state != ControllerState.PAUSED or session is None or adapter is None:
            raise InvalidStateError(operation="resume", state=str(self._state))
        if origin == PauseOrigin.VISIBILITY and self._pause_origin != PauseOrigin.VISIBILITY:
            self.logger.debug(f"Keeping {self._pause_origin} pause on visibility resume")
            return

        try:
            await adapter.start()
        except RecognitionError as e:
            self._notify(NotificationLevel.ERROR, ErrorMessages.DEVICE_FAILED)
            raise DeviceError(
                device_id=session.device_id,
                reason=f"recognition engine did not restart ({e.error_code})",
            ) from e

        self._timer.resume()
        session.resume()
        self._state = ControllerState.RECORDING
        self._pause_origin = None
        self._start_autosave()
        self.logger.info(f"Session {session.id} resumed ({origin})", session_id=session.id)

        await self._update_status(SessionStatus.RECORDING)
        if origin == PauseOrigin.VISIBILITY:
            self._notify(NotificationLevel.SUCCESS, Messages.AUTO_RESUMED)
        else:
            self._notify(NotificationLevel.SUCCESS, Messages.RESUMED)
        self._publish()

    async def _final_save(self) -> None:
        session = self._session
        if session is None or session.id is None:
            raise InvalidStateError(operation="save", state=str(self._state))

        patch = SessionPatch(
            status=SessionStatus.COMPLETED,
            transcript=session.transcript,
            ended_at=session.ended_at,
            elapsed_seconds=session.elapsed_seconds,
            duration=session.duration,
        )
        try:
            found = await self._call(
                self.gateway.update_session,
                session.id,
                patch,
                policy=self.config.final_save_retry,
            )
        except PersistenceError as e:
            self._notify(NotificationLevel.ERROR, ErrorMessages.SAVE_FAILED)
            raise FinalSaveError(operation="final-save", session_id=session.id) from e
        if not found:
            self._notify(NotificationLevel.ERROR, ErrorMessages.SAVE_FAILED)
            raise FinalSaveError(
                f"Session record {session.id} no longer exists",
                operation="final-save",
                session_id=session.id,
            )

        self._save_pending = False
        self._last_flushed = session.transcript
        self.logger.info(f"Session {session.id} saved", session_id=session.id)
        self._notify(NotificationLevel.SUCCESS, Messages.SAVED)

    async def _update_status(self, status: SessionStatus) -> None:
        """Write a status change. Failures are reported as a warning only."""
        session = self._session
        if session is None:
            return
        if not await self._flush(
            session, status=status, transcript=False, policy=self.config.autosave_retry
        ):
            self._notify(NotificationLevel.WARNING, ErrorMessages.STATUS_UPDATE_FAILED)

    async def _flush(
        self,
        session: RecordingSession,
        *,
        status: SessionStatus | None,
        transcript: bool,
        policy: RetryConfig,
    ) -> bool:
        """Write status and timing, plus the transcript when asked to and it
        changed since the last successful write.

        Returns:
            Whether the write succeeded.
        """
        if session.id is None:
            return False
        text = session.transcript
        changed = transcript and text != self._last_flushed
        patch = SessionPatch(
            status=status,
            transcript=text if changed else None,
            elapsed_seconds=session.elapsed_seconds,
            duration=session.duration,
        )
        try:
            found = await self._call(self.gateway.update_session, session.id, patch, policy=policy)
        except PersistenceError as e:
            self.logger.warning(f"Failed to update session {session.id}: {e}", session_id=session.id)
            return False
        if not found:
            self.logger.warning(f"Session record {session.id} not found", session_id=session.id)
            return False
        if changed:
            self._last_flushed = text
        return True

    async def _autosave_tick(self) -> None:
        session = self._session
        if self._state != ControllerState.RECORDING or session is None:
            return
        if session.transcript == self._last_flushed:
            return
        session.track(self._timer.elapsed())
        if await self._flush(
            session,
            status=SessionStatus.RECORDING,
            transcript=True,
            policy=self.config.autosave_retry,
        ):
            self.logger.debug(f"Autosaved session {session.id}", session_id=session.id)

    def _start_autosave(self) -> None:
        self._autosave = PeriodicTask(
            self._autosave_tick,
            self.config.autosave_interval,
            name="recording-autosave",
        )
        self._autosave.start()

    async def _stop_autosave(self) -> None:
        autosave, self._autosave = self._autosave, None
        if autosave is not None:
            await autosave.stop()

    async def _release_resources(self) -> None:
        resources, self._resources = self._resources, None
        self._handle = None
        self._adapter = None
        if resources is not None:
            await resources.aclose()

    async def _call(
        self,
        fn: t.Callable[..., t.Awaitable[t.Any]],
        /,
        *args: t.Any,
        policy: RetryConfig,
    ) -> t.Any:
        try:
            return await call_with_retry(fn, *args, policy=policy, logger=self.logger)
        except PersistenceError:
            raise
        except RETRYABLE as e:
            raise PersistenceError(operation=getattr(fn, "__name__", "")) from e

    def _on_recognition(self, event: Interim | Final | Fault) -> None:
        if isinstance(event, Fault):
            if event.code == "restart-failed":
                self._notify(NotificationLevel.WARNING, ErrorMessages.RESTART_FAILED)
            else:
                self._notify(NotificationLevel.WARNING, ErrorMessages.RECOGNITION_FAILED)
            return

        if self._state != ControllerState.RECORDING or self._session is None:
            self.logger.info(f"Dropped {event.kind} result received while {self._state}")
            return

        if isinstance(event, Final):
            self._session.append(event.text)
            self._interim = ""
        else:
            self._interim = event.text
        self._publish()

    async def _on_visibility(self, edge: VisibilityEdge) -> None:
        # Edges are judged under the lock, against the state left by any
        # operation that was in flight when they arrived.
        async with self._lock:
            if self._closed:
                return
            try:
                if edge == VisibilityEdge.BECAME_HIDDEN:
                    if (
                        self.config.auto_pause_on_hidden
                        and self._state == ControllerState.RECORDING
                    ):
                        await self._pause(PauseOrigin.VISIBILITY)
                elif (
                    self._state == ControllerState.PAUSED
                    and self._pause_origin == PauseOrigin.VISIBILITY
                ):
                    await self._resume(PauseOrigin.VISIBILITY)
            except (DeviceError, InvalidStateError) as e:
                self.logger.warning(f"Automatic {edge.value} handling failed: {e}")

    def _publish(self) -> None:
        if not self._listeners:
            return
        update = TranscriptUpdate(
            interim=self._interim,
            transcript=self._session.transcript if self._session else "",
            elapsed=self._timer.elapsed(),
        )
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                self.logger.exception("Transcript listener failed")

    def _notify(self, level: NotificationLevel, text: tuple[str, str]) -> None:
        title, message = text
        try:
            self.notifier.notify(level, title, message)
        except Exception:
            self.logger.exception(f"Notifier failed to deliver {title!r}")

    def __repr__(self) -> str:
        return f"CONTROLLER <{self._state}, session={self._session.key if self._session else None}>"
