from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from consulta.config import Config
    from consulta.lib.database.sqlite import SQLite


def make_sqlite(config: Config) -> SQLite:
    from consulta.lib.database.sqlite import SQLite
    from consulta.lib.persistence.tables import TABLES

    return SQLite(
        uri=config.infrastructure.sqlite.uri,
        tables=TABLES,
        echo=config.infrastructure.sqlite.echo,
        create_tables=config.infrastructure.sqlite.create_tables,
    )
