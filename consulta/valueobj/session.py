from __future__ import annotations

from consulta.valueobj import EnumValueObject


class SessionStatus(EnumValueObject):
    """Persisted status of a recording session.

    - IDLE: Session configured but not yet started
    - RECORDING: Speech is being captured and transcribed
    - PAUSED: Capture suspended, transcript frozen
    - COMPLETED: Session finished and finalized
    """

    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    COMPLETED = "completed"


class ControllerState(EnumValueObject):
    """State of the recording controller.

    `CONFIGURING` is the in-memory counterpart of a session whose persisted
    status is still `IDLE`.
    """

    IDLE = "idle"
    CONFIGURING = "configuring"
    RECORDING = "recording"
    PAUSED = "paused"
    COMPLETED = "completed"


class PauseOrigin(EnumValueObject):
    """Why a session is paused.

    Only a VISIBILITY pause is resumed automatically.
    """

    MANUAL = "manual"
    VISIBILITY = "visibility"
