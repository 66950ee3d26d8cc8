from __future__ import annotations

import asyncio
import types
import typing as t

from consulta.helper.mixin import AsyncContextMixin
from consulta.helper.mixin import ContextMixin
from consulta.helper.mixin import LoggingMixin

if t.TYPE_CHECKING:
    from consulta.lib.diagnostics import Diagnostics


class LifeSpan(LoggingMixin):
    """Initializes contexts on startup and closes them on shutdown.

    Synchronous contexts are handled in order; asynchronous ones are
    gathered. Shutdown closes them in reverse order of registration.
    """

    __logtag__ = "consulta.lifespan"

    def __init__(self, *contexts: object, diagnostics: Diagnostics | None = None) -> None:
        super().__init__(diagnostics)
        self.contexts = contexts

    def append(self, context: object) -> None:
        self.contexts += (context,)

    async def startup(self) -> t.Self:
        atasks: list[t.Coroutine[None, None, None]] = []
        for ctx in self.contexts:
            if isinstance(ctx, ContextMixin):
                self.logger.info(f"Initializing context: {ctx!r}")
                ctx.init()
            elif isinstance(ctx, AsyncContextMixin):
                self.logger.info(f"Async initializing context: {ctx!r}")
                atasks.append(ctx.init())

        if atasks:
            await asyncio.gather(*atasks)

        return self

    async def __aenter__(self) -> t.Self:
        return await self.startup()

    async def shutdown(self) -> None:
        atasks: list[t.Coroutine[None, None, None]] = []
        for ctx in reversed(self.contexts):
            if isinstance(ctx, ContextMixin):
                self.logger.info(f"Closing context: {ctx!r}")
                ctx.close()
            elif isinstance(ctx, AsyncContextMixin):
                self.logger.info(f"Async closing context: {ctx!r}")
                atasks.append(ctx.close())

        if atasks:
            await asyncio.gather(*atasks)

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: types.TracebackType | None,
    ) -> None:
        await self.shutdown()
