from __future__ import annotations

import datetime

from consulta import utils
from consulta.entity import Entity
from consulta.entity import touch_after
from consulta.entity.fields import DateTimeField
from consulta.entity.fields import FloatField
from consulta.entity.fields import StringBackedField
from consulta.entity.fields import StringField
from consulta.exceptions import InvalidStateError
from consulta.exceptions import ValidationError
from consulta.valueobj.session import SessionStatus

TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.IDLE: frozenset({SessionStatus.RECORDING}),
    SessionStatus.RECORDING: frozenset({SessionStatus.PAUSED, SessionStatus.COMPLETED}),
    SessionStatus.PAUSED: frozenset({SessionStatus.RECORDING, SessionStatus.COMPLETED}),
    SessionStatus.COMPLETED: frozenset(),
}


class RecordingSession(Entity):
    """A single consultation being recorded and transcribed.

    The session lives in memory from configuration until its owner disposes
    of it. It holds the accumulated transcript and timing; the persistence
    gateway only ever sees snapshots of it.

    Attributes:
        key: Client-generated draft key, used to make record creation
            idempotent. Auto-generated with "draft-" prefix.
        id: Identifier assigned by the persistence gateway on first
            successful create. None until the session starts.
        patient_id: The patient being seen. Immutable.
        patient_name: Display name of the patient, used to derive the title.
        device_id: Input device the audio is captured from.
        title: Human label. Editable until the session starts.
        user_id: The operator running the consultation. Optional.
        status: Current status (IDLE, RECORDING, PAUSED, COMPLETED).
        transcript: Final recognition results joined by single spaces. Only
            grows, and only while recording.
        started_at: When recording first started.
        ended_at: When the session was completed.
        elapsed_seconds: Time spent recording. Frozen while paused.
        created_at: When the session was configured.
        updated_at: Last in-memory mutation.

    Example:
        ```python
        session = RecordingSession.new(
            patient_id="p1",
            device_id="mic1",
            patient_name="Maria Souza",
        )
        print(session.title)  # "Maria Souza - 17/10/2026 14:30"

        session.begin("sess-1", at=utils.utcnow())
        session.append("  Paciente relata dor de cabeça. ")
        session.pause(elapsed=12.4)
        print(session.duration)  # "00:00:12"
        ```
    """

    key: str = StringField(immutable=True, default_factory=lambda: utils.gen_id(prefix="draft-"))
    id: str | None = StringField(nullable=True, immutable=True)
    patient_id: str = StringField(immutable=True)
    patient_name: str | None = StringField(nullable=True)
    device_id: str = StringField()
    title: str = StringField()
    user_id: str | None = StringField(nullable=True)
    status: SessionStatus = StringBackedField(SessionStatus, default=SessionStatus.IDLE)
    transcript: str = StringField(default="")
    started_at: datetime.datetime | None = DateTimeField(nullable=True)
    ended_at: datetime.datetime | None = DateTimeField(nullable=True)
    elapsed_seconds: float = FloatField(default=0.0)
    created_at: datetime.datetime = DateTimeField(default_factory=utils.utcnow, immutable=True)
    updated_at: datetime.datetime | None = DateTimeField(nullable=True)

    @classmethod
    def new(
        cls,
        *,
        patient_id: str,
        device_id: str,
        title: str | None = None,
        patient_name: str | None = None,
        user_id: str | None = None,
        now: datetime.datetime | None = None,
    ) -> RecordingSession:
        """Validate the operator's choices and build a draft session.

        When no title is given it is derived as ``"<name> - dd/mm/yyyy
        HH:MM"`` from the patient name.

        Raises:
            ValidationError: If the patient or device is missing, or no
                title is given and none can be derived.
        """
        patient_id = (patient_id or "").strip()
        device_id = (device_id or "").strip()
        if not patient_id:
            raise ValidationError("Selecione um paciente", reason="patient_required")
        if not device_id:
            raise ValidationError("Selecione um microfone", reason="device_required")

        title = (title or "").strip()
        name = (patient_name or "").strip() or None
        if not title:
            if name is None:
                raise ValidationError("Informe um título para a consulta", reason="title_required")
            title = f"{name} - {utils.format_datetime_short(now or utils.utcnow())}"

        return cls(
            patient_id=patient_id,
            device_id=device_id,
            title=title,
            patient_name=name,
            user_id=user_id,
        )

    @property
    def duration(self) -> str:
        """Elapsed recording time as ``HH:MM:SS``."""
        return utils.format_duration(self.elapsed_seconds)

    @property
    def is_started(self) -> bool:
        return self.status != SessionStatus.IDLE

    @property
    def is_finished(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def touch(self) -> None:
        self.updated_at = utils.utcnow()

    @touch_after
    def retitle(self, title: str) -> None:
        """Change the title. Only allowed before the session starts."""
        if self.is_started:
            raise InvalidStateError(operation="retitle", state=str(self.status))
        title = (title or "").strip()
        if not title:
            raise ValidationError("Informe um título para a consulta", reason="title_required")
        self.title = title

    @touch_after
    def begin(self, session_id: str, *, at: datetime.datetime) -> None:
        """Mark the session as recording under the id the gateway
        assigned."""
        self._transition("start", SessionStatus.RECORDING)
        self.id = session_id
        if self.started_at is None:
            self.started_at = at

    @touch_after
    def pause(self, *, elapsed: float) -> None:
        self._transition("pause", SessionStatus.PAUSED)
        self.track(elapsed)

    @touch_after
    def resume(self) -> None:
        self._transition("resume", SessionStatus.RECORDING)

    @touch_after
    def complete(self, *, elapsed: float, at: datetime.datetime) -> None:
        """Finish the session.

        Raises:
            InvalidStateError: If the session never recorded.
        """
        if self.started_at is None:
            raise InvalidStateError(operation="complete", state=str(self.status))
        self._transition("stop", SessionStatus.COMPLETED)
        self.track(elapsed)
        self.ended_at = at

    def track(self, elapsed: float) -> None:
        """Record the timer reading. The counter never goes backwards."""
        self.elapsed_seconds = max(self.elapsed_seconds, float(elapsed))

    def append(self, text: str) -> bool:
        """Append a final recognition result to the transcript.

        Args:
            text: The recognized fragment. Surrounding whitespace is
                stripped.

        Returns:
            True if the transcript grew, False for blank fragments.

        Raises:
            InvalidStateError: If the session is not recording.
        """
        if self.status != SessionStatus.RECORDING:
            raise InvalidStateError(operation="append", state=str(self.status))
        fragment = text.strip()
        if not fragment:
            return False
        self.transcript = f"{self.transcript} {fragment}" if self.transcript else fragment
        return True

    def _transition(self, operation: str, target: SessionStatus) -> None:
        if target not in TRANSITIONS[self.status]:
            raise InvalidStateError(operation=operation, state=str(self.status))
        self.status = target
