from __future__ import annotations

import asyncio as aio
import contextlib
import time
import typing as t

from consulta.helper.mixin import AsyncContextMixin


class SessionTimer:
    """Stopwatch for the time a session spends recording.

    Elapsed time is computed from clock deltas, not accumulated ticks, so it
    stays correct when the event loop is throttled.

    Args:
        clock: Monotonic clock returning seconds. Defaults to
            `time.monotonic`.

    Example:
        ```python
        timer = SessionTimer()
        timer.start()
        ...
        timer.pause()
        print(timer.elapsed())  # frozen while paused
        timer.resume()
        ```
    """

    __slots__ = ("_accumulated", "_clock", "_started_at")

    def __init__(self, clock: t.Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._accumulated = 0.0
        self._started_at: float | None = None

    @property
    def running(self) -> bool:
        return self._started_at is not None

    def start(self) -> None:
        """Start from zero. Discards any previous reading."""
        self._accumulated = 0.0
        self._started_at = self._clock()

    def pause(self) -> float:
        """Freeze the counter. No-op when not running.

        Returns:
            The elapsed seconds at the moment of pausing.
        """
        if self._started_at is not None:
            self._accumulated += max(self._clock() - self._started_at, 0.0)
            self._started_at = None
        return self._accumulated

    def resume(self) -> None:
        """Continue counting from the frozen value. No-op when running."""
        if self._started_at is None:
            self._started_at = self._clock()

    def elapsed(self) -> float:
        if self._started_at is None:
            return self._accumulated
        return self._accumulated + max(self._clock() - self._started_at, 0.0)

    def reset(self) -> None:
        self._accumulated = 0.0
        self._started_at = None

    def __repr__(self) -> str:
        return f"TIMER <elapsed={self.elapsed():.1f}s, running={self.running}>"


class PeriodicTask(AsyncContextMixin):
    """Runs a coroutine callback every `interval` seconds in its own task.

    The first call happens one interval after `start()`. The task is owned
    here and torn down by `stop()` or on leaving the async context.
    Exceptions raised by the callback end the loop; callers that want to
    keep going handle their own errors.

    Args:
        callback: Coroutine function called on every tick.
        interval: Seconds between calls.
        name: Name given to the asyncio task.
    """

    def __init__(
        self,
        callback: t.Callable[[], t.Awaitable[None]],
        interval: float,
        *,
        name: str = "periodic-task",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self.name = name
        self._task: aio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. No-op when already running."""
        if self.running:
            return
        self._task = aio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        """Cancel the task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        if task is aio.current_task():
            return
        with contextlib.suppress(aio.CancelledError):
            await task

    async def init(self) -> None:
        self.start()

    async def close(self) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await aio.sleep(self.interval)
            await self.callback()
