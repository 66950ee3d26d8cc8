from __future__ import annotations

import typing as t

from consulta.exceptions import ConfigurationError

if t.TYPE_CHECKING:
    from consulta.config import Config
    from consulta.lib.database.sqlite import SQLite
    from consulta.lib.persistence import SessionGateway


def make_gateway(config: Config, sqlite: SQLite) -> SessionGateway:
    backend = config.infrastructure.persistence.backend
    if backend == "memory":
        from consulta.lib.persistence.memory import InMemorySessionGateway

        return InMemorySessionGateway()
    if backend == "sqlite":
        from consulta.lib.persistence.sqlite import SQLiteSessionGateway

        return SQLiteSessionGateway(sqlite)

    raise ConfigurationError(
        config_key="infrastructure.persistence.backend",
        reason=f"unsupported backend {backend!r}",
    )
