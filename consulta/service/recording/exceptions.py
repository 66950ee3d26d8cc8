from __future__ import annotations

import typing as t

from consulta.exceptions import ConsultaError
from consulta.exceptions import InvalidStateError
from consulta.exceptions import PersistenceError

__all__ = [
    "FinalSaveError",
    "InvalidStateError",
    "PersistenceError",
    "RecordingError",
]


class RecordingError(ConsultaError):
    """Base exception for recording service errors."""

    default_message = "Recording operation failed"
    code: t.ClassVar[int] = 0x50


class FinalSaveError(PersistenceError):
    """Raised when the completed session could not be written.

    The transcript is kept in memory and `retry_save()` repeats the write.
    """

    default_message = "Failed to save the completed session"
    code: t.ClassVar[int] = 0x51
