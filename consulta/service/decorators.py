from __future__ import annotations

import functools as ft
import typing as t

if t.TYPE_CHECKING:
    from consulta.service import BaseService

    ServiceMethodT = t.TypeVar("ServiceMethodT", bound=t.Callable[..., t.Awaitable[t.Any]])


def log_call(func: ServiceMethodT) -> ServiceMethodT:
    """Decorator to log calls to service methods.

    Logs the invocation with its arguments, then either its completion or
    the error it raised. The error is re-raised unchanged.

    Args:
        func: The service method to decorate.

    Returns:
        The decorated service method with logging.
    """

    @ft.wraps(func)
    async def wrapper(self: BaseService, *args: t.Any, **kwargs: t.Any) -> t.Any:
        op = func.__name__
        self.logger.debug(f"Calling {op} with args={args} kwargs={kwargs}")
        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.error(f"{op} failed with error: {e}")
            raise
        self.logger.debug(f"{op} completed successfully.")
        return result

    return wrapper  # type: ignore[return-value]
