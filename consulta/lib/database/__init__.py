from __future__ import annotations

import abc

from consulta.helper.mixin import AsyncContextMixin


class Database(AsyncContextMixin, abc.ABC):
    """Abstract base class for database containers.

    Implementations own an engine between `init()` and `close()` and expose
    a connectivity check.
    """

    @abc.abstractmethod
    async def ping(self) -> bool:
        """Check database connectivity.

        Returns:
            True if database is reachable and healthy, False otherwise.
        """

    def __repr__(self) -> str:
        return f"DATABASE <{self.__class__.__name__}>"
