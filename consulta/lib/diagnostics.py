from __future__ import annotations

import collections
import datetime
import typing as t

import loguru

from consulta import utils

Loglevel: t.TypeAlias = t.Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class DiagnosticEntry(t.NamedTuple):
    """A single diagnostic record kept in memory.

    Attributes:
        timestamp: When the entry was recorded (UTC).
        level: Log level name.
        tag: Tag of the component that emitted the entry.
        message: The log message.
        context: Extra context bound to the logger or passed with the call.
    """

    timestamp: datetime.datetime
    level: Loglevel
    tag: str
    message: str
    context: dict[str, t.Any]


class Diagnostics:
    """Explicitly constructed diagnostics interface.

    Wraps a loguru logger bound with a tag and an arbitrary context, and
    keeps the most recent entries in a bounded ring buffer so a debug panel
    can show them without reading log files. Loggers derived with
    `with_tag()` or `with_context()` share the buffer of their parent, so
    one instance per session owner collects everything that owner's
    components logged.

    Args:
        capacity: Maximum number of entries kept in memory.
        tag: Tag bound to every record.
        context: Extra context bound to every record.

    Example:
        ```python
        diagnostics = Diagnostics(capacity=500)
        log = diagnostics.with_tag("consulta.service.recording")
        log.info("Session started", session_id="sess-1")

        for entry in diagnostics.entries(level="INFO"):
            print(entry.timestamp, entry.tag, entry.message)
        ```
    """

    __slots__ = ("_buffer", "_context", "_logger", "_tag")

    def __init__(
        self,
        *,
        capacity: int = 1000,
        tag: str = "consulta",
        context: dict[str, t.Any] | None = None,
        buffer: collections.deque[DiagnosticEntry] | None = None,
    ) -> None:
        self._buffer: collections.deque[DiagnosticEntry] = (
            buffer if buffer is not None else collections.deque(maxlen=capacity)
        )
        self._tag = tag
        self._context = context or {}
        self._logger = loguru.logger.bind(tag=tag, **self._context)

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def capacity(self) -> int | None:
        return self._buffer.maxlen

    def with_tag(self, tag: str, /) -> Diagnostics:
        """Derive a diagnostics instance with another tag, sharing the
        buffer."""
        return Diagnostics(tag=tag, context=self._context, buffer=self._buffer)

    def with_context(self, /, **kwargs: t.Any) -> Diagnostics:
        """Derive a diagnostics instance with additional context, sharing
        the buffer."""
        return Diagnostics(tag=self._tag, context={**self._context, **kwargs}, buffer=self._buffer)

    def log(self, msg: str, /, level: Loglevel, *, exc_info: bool = False, **kwargs: t.Any) -> None:
        """Log a message at the given level and record it in the buffer."""
        logger = self._logger.bind(**kwargs) if kwargs else self._logger
        if exc_info:
            logger = logger.opt(exception=True)
        logger.log(level, msg)
        self._buffer.append(
            DiagnosticEntry(
                timestamp=utils.utcnow(),
                level=level,
                tag=self._tag,
                message=msg,
                context={**self._context, **kwargs},
            )
        )

    def debug(self, msg: str, /, **kwargs: t.Any) -> None:
        self.log(msg, level="DEBUG", **kwargs)

    def info(self, msg: str, /, **kwargs: t.Any) -> None:
        self.log(msg, level="INFO", **kwargs)

    def warning(self, msg: str, /, **kwargs: t.Any) -> None:
        self.log(msg, level="WARNING", **kwargs)

    def error(self, msg: str, /, **kwargs: t.Any) -> None:
        self.log(msg, level="ERROR", **kwargs)

    def exception(self, msg: str, /, **kwargs: t.Any) -> None:
        """Log an error with the traceback of the exception being
        handled."""
        self.log(msg, level="ERROR", exc_info=True, **kwargs)

    def entries(self, *, level: Loglevel | None = None, tag: str | None = None) -> list[DiagnosticEntry]:
        """Return buffered entries, oldest first, optionally filtered."""
        return [
            e
            for e in self._buffer
            if (level is None or e.level == level) and (tag is None or e.tag == tag)
        ]

    def clear(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)

    def __repr__(self) -> str:
        return f"DIAGNOSTICS <{self._tag}(entries={len(self._buffer)}, capacity={self.capacity})>"
