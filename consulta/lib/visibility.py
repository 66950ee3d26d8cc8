from __future__ import annotations

import asyncio as aio
import enum
import inspect
import typing as t

from consulta.helper.mixin import LoggingMixin

if t.TYPE_CHECKING:
    from consulta.lib.diagnostics import Diagnostics


class VisibilityEdge(enum.Enum):
    BECAME_HIDDEN = "became_hidden"
    BECAME_VISIBLE = "became_visible"


VisibilityListener: t.TypeAlias = t.Callable[[VisibilityEdge], t.Awaitable[None] | None]


class VisibilityMonitor(LoggingMixin):
    """Turns raw foreground/background signals from the host into
    debounced edges.

    The host calls `signal()` whenever its visibility changes. A change
    must hold for `debounce` seconds before it is published, and an edge is
    only published when the settled state differs from the last published
    one, so rapid flicker collapses into nothing.

    Subscribers may be plain or async callables. Async ones are scheduled as
    tasks. A failing subscriber is logged and does not affect the others.

    Args:
        visible: Initial visibility of the host surface.
        debounce: Settle window in seconds. Zero publishes immediately.
        diagnostics: Diagnostics to log through.

    Example:
        ```python
        monitor = VisibilityMonitor(debounce=0.25)
        unsubscribe = monitor.subscribe(lambda edge: print(edge))

        monitor.signal(False)  # after 0.25s: VisibilityEdge.BECAME_HIDDEN
        unsubscribe()
        ```
    """

    __logtag__ = "consulta.lib.visibility"

    def __init__(
        self,
        *,
        visible: bool = True,
        debounce: float = 0.25,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        super().__init__(diagnostics)
        if debounce < 0:
            raise ValueError("debounce must not be negative")
        self.debounce = debounce
        self._published = visible
        self._raw = visible
        self._listeners: list[VisibilityListener] = []
        self._pending: aio.TimerHandle | None = None
        self._tasks: set[aio.Task[None]] = set()

    @property
    def visible(self) -> bool:
        """The last published visibility."""
        return self._published

    def subscribe(self, listener: VisibilityListener) -> t.Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that removes the listener. Calling it twice is fine.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def signal(self, visible: bool) -> None:
        """Feed the current raw visibility of the host surface."""
        self._raw = visible
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

        if self.debounce == 0:
            self._settle()
            return
        self._pending = aio.get_running_loop().call_later(self.debounce, self._settle)

    async def drain(self) -> None:
        """Wait until the async subscribers scheduled so far finished."""
        while self._tasks:
            await aio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Drop pending signals, listeners and in-flight subscriber
        tasks."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._listeners.clear()

    def _settle(self) -> None:
        self._pending = None
        if self._raw == self._published:
            return
        self._published = self._raw
        edge = VisibilityEdge.BECAME_VISIBLE if self._raw else VisibilityEdge.BECAME_HIDDEN
        self.logger.debug(f"Visibility edge {edge.value}")
        self._publish(edge)

    def _publish(self, edge: VisibilityEdge) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(edge)
            except Exception:
                self.logger.exception(f"Visibility listener failed on {edge.value}")
                continue
            if inspect.isawaitable(result):
                task = aio.ensure_future(self._await_listener(result, edge))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

    async def _await_listener(self, result: t.Awaitable[None], edge: VisibilityEdge) -> None:
        try:
            await result
        except Exception:
            self.logger.exception(f"Visibility listener failed on {edge.value}")

    def __repr__(self) -> str:
        return f"VISIBILITY <visible={self._published}, listeners={len(self._listeners)}>"
