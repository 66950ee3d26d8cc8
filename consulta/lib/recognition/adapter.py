from __future__ import annotations

import asyncio as aio
import typing as t

import pydantic as pyd

from consulta.helper.mixin import LoggingMixin
from consulta.lib.recognition import TRANSIENT_ERRORS
from consulta.lib.recognition import Ended
from consulta.lib.recognition import EngineError
from consulta.lib.recognition import EngineTransientError
from consulta.lib.recognition import Fault
from consulta.lib.recognition import Final
from consulta.lib.recognition import Interim
from consulta.lib.recognition import RecognitionEngine
from consulta.lib.recognition import RecognitionError
from consulta.lib.recognition import normalize

if t.TYPE_CHECKING:
    from consulta.lib.diagnostics import Diagnostics

EventListener: t.TypeAlias = t.Callable[[Interim | Final | Fault], None]


class RecognitionAdapter(LoggingMixin):
    """Keeps a recognition engine running for as long as its owner wants
    it to.

    The adapter tracks two flags: `should_run`, which only the owner changes
    through `start()`/`stop()`, and `running`, which follows the engine.
    `stop()` clears `should_run` before it awaits the engine, so an `end`
    delivered while stopping is recognized as requested and is not
    restarted.

    When the engine ends on its own while it should run, the adapter
    restarts it immediately. At most `max_restart_attempts` restarts are
    made in a row without the engine showing signs of life in between (a
    result, or a `no-speech`/`aborted` timeout), so an engine that starts
    and dies at once is given up on rather than restarted forever.
    `no-speech` and `aborted` errors are logged at debug level only. Other
    engine errors reach the listeners as `Fault` events, as does running out
    of restart attempts (code `restart-failed`).

    Args:
        engine: The engine to drive. The adapter attaches itself to it.
        max_restart_attempts: Restart attempts after an unrequested end.
        diagnostics: Diagnostics to log through.

    Example:
        ```python
        adapter = RecognitionAdapter(provider.create("mic1", "pt-BR"))
        adapter.listen(on_event)
        await adapter.start()
        ...
        await adapter.stop()
        await adapter.close()
        ```
    """

    __logtag__ = "consulta.lib.recognition"

    def __init__(
        self,
        engine: RecognitionEngine,
        *,
        max_restart_attempts: int = 3,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        super().__init__(diagnostics)
        self.engine = engine
        self.max_restart_attempts = max_restart_attempts
        self._listeners: list[EventListener] = []
        self._should_run = False
        self._running = False
        self._closed = False
        self._restart_task: aio.Task[None] | None = None
        self._restarts = 0
        self.engine.attach(self._on_payload)

    @property
    def should_run(self) -> bool:
        return self._should_run

    @property
    def running(self) -> bool:
        return self._running

    @property
    def closed(self) -> bool:
        return self._closed

    def listen(self, listener: EventListener) -> t.Callable[[], None]:
        """Register a listener for `Interim`, `Final` and `Fault` events.

        Listeners are called synchronously in emission order.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unlisten() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unlisten

    async def start(self) -> None:
        """Start the engine.

        Raises:
            RecognitionError: If the adapter is closed or the engine fails
                to start.
        """
        if self._closed:
            raise RecognitionError("Recognition adapter is closed", error_code="closed")
        self._should_run = True
        if self._running:
            return
        try:
            await self.engine.start()
        except Exception as e:
            self._should_run = False
            self.logger.warning(f"Recognition engine failed to start: {e!r}")
            if isinstance(e, RecognitionError):
                raise
            raise RecognitionError(error_code="start-failed") from e
        self._running = True
        self._restarts = 0
        self.logger.debug("Recognition engine started")

    async def stop(self) -> None:
        """Stop the engine. The engine is not restarted until `start()`."""
        self._should_run = False
        task, self._restart_task = self._restart_task, None
        if task is not None and task is not aio.current_task():
            await task
        if not self._running:
            return
        self._running = False
        try:
            await self.engine.stop()
        except Exception as e:
            self.logger.warning(f"Recognition engine failed to stop cleanly: {e!r}")
        self.logger.debug("Recognition engine stopped")

    async def close(self) -> None:
        """Stop the engine and detach from it for good."""
        await self.stop()
        self.engine.attach(None)
        self._listeners.clear()
        self._closed = True

    def _on_payload(self, payload: t.Any) -> None:
        try:
            events = normalize(payload)
        except pyd.ValidationError as e:
            self.logger.warning(f"Dropped malformed recognition payload: {e.error_count()} error(s)")
            return

        for event in events:
            if isinstance(event, Ended):
                self._on_end()
            elif isinstance(event, Fault):
                self._on_fault(event)
            else:
                self._restarts = 0
                self._publish(event)

    def _on_fault(self, fault: Fault) -> None:
        try:
            self._classify(fault)
        except EngineTransientError as e:
            self._restarts = 0
            self.logger.debug(f"Transient recognition interruption: {e.error_code}")
        except EngineError as e:
            self.logger.warning(f"Recognition engine error: {e.error_code} {fault.message}".rstrip())
            self._publish(fault)

    @staticmethod
    def _classify(fault: Fault) -> t.NoReturn:
        if fault.code in TRANSIENT_ERRORS:
            raise EngineTransientError(fault.message or None, error_code=fault.code)
        raise EngineError(fault.message or None, error_code=fault.code)

    def _on_end(self) -> None:
        self._running = False
        if not self._should_run or self._closed:
            return
        if self._restart_task is not None and not self._restart_task.done():
            return
        self._restart_task = aio.get_running_loop().create_task(
            self._restart(), name="recognition-restart"
        )

    async def _restart(self) -> None:
        while self._restarts < self.max_restart_attempts:
            if not self._should_run:
                return
            self._restarts += 1
            attempt = self._restarts
            try:
                await self.engine.start()
            except Exception as e:
                self.logger.warning(
                    f"Recognition restart attempt {attempt}/{self.max_restart_attempts} failed: {e!r}"
                )
                continue
            if not self._should_run:
                # stop() ran while the engine was starting.
                await self.engine.stop()
                return
            self._running = True
            self.logger.debug(f"Recognition engine restarted (attempt {attempt})")
            return

        if self._should_run:
            self.logger.error("Recognition engine could not be restarted")
            self._publish(
                Fault(code="restart-failed", message="Recognition engine could not be restarted")
            )

    def _publish(self, event: Interim | Final | Fault) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self.logger.exception(f"Recognition listener failed on {event.kind} event")

    def __repr__(self) -> str:
        return (
            f"RECOGNITION ADAPTER <should_run={self._should_run}, "
            f"running={self._running}, closed={self._closed}>"
        )
