from __future__ import annotations

import typing as t

import pydantic as pyd


class ConsultaError(Exception):
    """Base exception for all Consulta-related errors.

    Attributes:
        default_message: Default error message for this exception type.
        code: Unique error code identifying this exception type.
        message: The actual error message for this instance.
    """

    __slots__ = ("message",)

    default_message: t.ClassVar[str] = "An error occurred in Consulta."
    code: t.ClassVar[int] = 0x01

    def __init__(self, message: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Custom error message. If None, uses default_message.
        """
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[Error {self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code}, message={self.message!r})"

    def as_dict(self) -> dict[str, t.Any]:
        """Convert exception to dictionary with all slots."""
        data: dict[str, t.Any] = {"code": self.code}
        for cls in type(self).__mro__:
            for slot in getattr(cls, "__slots__", ()):
                data.setdefault(slot, getattr(self, slot, None))
        return data


class InternalError(ConsultaError):
    """Base exception for internal errors.

    These errors should not expose technical details to the operator. The
    presentation layer shows a generic message with the error code.
    """

    __slots__ = ("details",)

    default_message = "Internal error occurred"
    code: t.ClassVar[int] = 0x10

    def __init__(self, message: str | None = None, **details: t.Any) -> None:
        """Initialize the exception.

        Args:
            message: Custom error message. If None, uses default_message.
            **details: Additional technical details for diagnostics.
        """
        self.details = details
        super().__init__(message)


class RequiredModuleNotFoundError(InternalError):
    """Raised when an optional dependency is needed but missing."""

    __slots__ = ("module_name",)

    default_message = "Required module not found"
    code: t.ClassVar[int] = 0x11

    def __init__(self, *module_name: str, message: str | None = None, **details: t.Any) -> None:
        self.module_name = module_name
        full_message = message or f"{self.default_message}: {', '.join(module_name)}"
        super().__init__(full_message, **details)


class ValidationError(ConsultaError):
    """Raised when operator input fails validation.

    Validation errors are local and never reach the persistence gateway.
    """

    __slots__ = ("reason",)

    default_message = "Validation failed"
    code: t.ClassVar[int] = 0x12

    def __init__(self, message: str | None = None, *, reason: str) -> None:
        """Initialize the exception.

        Args:
            message: Custom error message. If None, uses formatted default_message.
            reason: Description of what failed validation.
        """
        self.reason = reason
        full_message = message or f"{self.default_message}: {reason}"
        super().__init__(full_message)

    @classmethod
    def from_pydantic_validation_err(cls, err: pyd.ValidationError) -> t.Self:
        """Create ValidationError from a Pydantic ValidationError."""
        reason = "; ".join(f"{e['loc']}: {e['msg']}" for e in err.errors())
        return cls(reason=reason)


class ConfigurationError(InternalError):
    """Raised for invalid configuration values."""

    __slots__ = ("config_key", "reason")

    default_message = "Configuration error occurred"
    code: t.ClassVar[int] = 0x13

    def __init__(
        self, message: str | None = None, *, config_key: str, reason: str, **details: t.Any
    ) -> None:
        self.config_key = config_key
        self.reason = reason
        full_message = message or f"{self.default_message}: [{config_key}] {reason}"
        super().__init__(full_message, **details)


class DeviceError(ConsultaError):
    """Raised when the capture device is unavailable or permission is
    denied.

    Fatal to the operation that raised it; the caller keeps its pre-call
    state and the operator may retry.
    """

    __slots__ = ("device_id", "reason")

    default_message = "Capture device unavailable"
    code: t.ClassVar[int] = 0x20

    def __init__(
        self, message: str | None = None, *, device_id: str | None = None, reason: str = ""
    ) -> None:
        self.device_id = device_id
        self.reason = reason
        full_message = message or (
            f"{self.default_message}: {device_id} ({reason})"
            if reason
            else f"{self.default_message}: {device_id}"
        )
        super().__init__(full_message)


class InvalidStateError(ConsultaError):
    """Raised when an operation is not valid in the current state."""

    __slots__ = ("operation", "state")

    default_message = "Operation not allowed in the current state"
    code: t.ClassVar[int] = 0x14

    def __init__(self, message: str | None = None, *, operation: str, state: str) -> None:
        self.operation = operation
        self.state = state
        full_message = message or f"{self.default_message}: cannot {operation} while {state}"
        super().__init__(full_message)


class PersistenceError(ConsultaError):
    """Raised when the persistence gateway fails to create or update a
    session record.

    Safe to retry: both gateway operations are idempotent.
    """

    __slots__ = ("operation", "session_id")

    default_message = "Failed to persist session"
    code: t.ClassVar[int] = 0x30

    def __init__(
        self,
        message: str | None = None,
        *,
        operation: str = "",
        session_id: str | None = None,
    ) -> None:
        self.operation = operation
        self.session_id = session_id
        full_message = message or (
            f"{self.default_message} ({operation})" if operation else self.default_message
        )
        super().__init__(full_message)
