from __future__ import annotations

import abc
import asyncio as aio
import typing as t

from consulta.helper.mixin import LoggingMixin
from consulta.valueobj.notification import NotificationLevel

if t.TYPE_CHECKING:
    from consulta.lib.diagnostics import Diagnostics


class Notification(t.NamedTuple):
    level: NotificationLevel
    title: str
    message: str


class Notifier(abc.ABC):
    """One-way notification surface towards the operator.

    Fire-and-forget: nothing is returned and the caller never waits for the
    operator to see the message.
    """

    @abc.abstractmethod
    def notify(self, level: NotificationLevel, title: str, message: str = "") -> None: ...

    def success(self, title: str, message: str = "") -> None:
        self.notify(NotificationLevel.SUCCESS, title, message)

    def info(self, title: str, message: str = "") -> None:
        self.notify(NotificationLevel.INFO, title, message)

    def warning(self, title: str, message: str = "") -> None:
        self.notify(NotificationLevel.WARNING, title, message)

    def error(self, title: str, message: str = "") -> None:
        self.notify(NotificationLevel.ERROR, title, message)

    def __repr__(self) -> str:
        return f"NOTIFIER <{self.__class__.__name__}>"


class LoggingNotifier(LoggingMixin, Notifier):
    """Writes notifications to the diagnostics log. Used when no UI is
    attached."""

    __logtag__ = "consulta.lib.notification"

    LEVELS: t.ClassVar[dict[NotificationLevel, t.Literal["INFO", "WARNING", "ERROR"]]] = {
        NotificationLevel.SUCCESS: "INFO",
        NotificationLevel.INFO: "INFO",
        NotificationLevel.WARNING: "WARNING",
        NotificationLevel.ERROR: "ERROR",
    }

    def __init__(self, diagnostics: Diagnostics | None = None) -> None:
        super().__init__(diagnostics)

    def notify(self, level: NotificationLevel, title: str, message: str = "") -> None:
        self.logger.log(
            f"{title}: {message}" if message else title,
            level=self.LEVELS[level],
            notification=level.value,
        )


class QueueNotifier(Notifier):
    """Puts notifications on an asyncio queue for a UI task to consume.

    Example:
        ```python
        notifier = QueueNotifier()

        async def render() -> None:
            while True:
                note = await notifier.queue.get()
                toast(note.level.value, note.title, note.message)
        ```
    """

    def __init__(self, maxsize: int = 0) -> None:
        self.queue: aio.Queue[Notification] = aio.Queue(maxsize=maxsize)

    def notify(self, level: NotificationLevel, title: str, message: str = "") -> None:
        self.queue.put_nowait(Notification(level, title, message))

    def drain(self) -> list[Notification]:
        """Take every queued notification without waiting."""
        items: list[Notification] = []
        while not self.queue.empty():
            items.append(self.queue.get_nowait())
        return items
