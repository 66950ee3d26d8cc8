from __future__ import annotations

import typing as t

import sqlalchemy as sa
import sqlalchemy.event as saevent
import sqlalchemy.ext.asyncio as aiosa
import sqlalchemy.pool as sapool
import sqlmodel as sqlm

from consulta.lib.database import Database


class SQLite(Database):
    """SQLite database container with async SQLModel/SQLAlchemy support.

    Attributes:
        uri: SQLite connection URI.
        engine: SQLAlchemy async engine (set by init()).
        sessionmaker: Async session factory (set by init()).

    Args:
        uri: SQLite connection URI (must use the aiosqlite driver).
            Example: "sqlite+aiosqlite:///./consulta.db" (relative path)
            Example: "sqlite+aiosqlite:///:memory:" (in-memory database)
        tables: SQLModel classes to create on `create_all()`.
        echo: Whether to log all SQL statements.
        create_tables: Whether `init()` creates missing tables.

    Example:
        ```python
        async with SQLite("sqlite+aiosqlite:///:memory:", tables=[SessionTable]) as sqlite:
            async with sqlite.session() as session:
                row = await session.get(SessionTable, session_id)
        ```

    Note:
        In-memory databases use a StaticPool so every session sees the same
        connection; file databases use a NullPool.
    """

    def __init__(
        self,
        uri: str,
        *,
        tables: t.Iterable[type[sqlm.SQLModel]] | None = None,
        echo: bool = False,
        create_tables: bool = True,
    ) -> None:
        self.uri = uri
        self.tables = list(tables or [])
        self.echo = echo
        self.create_tables = create_tables
        self.engine: aiosa.AsyncEngine | None = None
        self.sessionmaker: aiosa.async_sessionmaker[aiosa.AsyncSession] | None = None

    async def init(self) -> None:
        """Create the engine and session factory, and the tables when
        configured to."""
        if self.engine is not None:
            return

        in_memory = ":memory:" in self.uri
        self.engine = aiosa.create_async_engine(
            self.uri,
            echo=self.echo,
            poolclass=sapool.StaticPool if in_memory else sapool.NullPool,
            connect_args={"check_same_thread": False},
        )

        @saevent.listens_for(self.engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn: t.Any, _connection_record: t.Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        self.sessionmaker = aiosa.async_sessionmaker(
            self.engine,
            class_=aiosa.AsyncSession,
            expire_on_commit=False,
        )

        if self.create_tables:
            await self.create_all()

    async def close(self) -> None:
        """Dispose of the engine. Safe to call more than once."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.sessionmaker = None

    def session(self) -> aiosa.AsyncSession:
        """Create a new async database session.

        Raises:
            RuntimeError: If sessionmaker is not initialized (call init() first).
        """
        if not self.sessionmaker:
            raise RuntimeError("Sessionmaker not initialized. Call init() first.")
        return self.sessionmaker()

    async def ping(self) -> bool:
        if not self.engine:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(sa.text("SELECT 1"))
            return True
        except sa.exc.SQLAlchemyError:
            return False

    async def create_all(self) -> None:
        """Create the managed tables, or every SQLModel table when none
        were given.

        Raises:
            RuntimeError: If engine is not initialized.
        """
        if not self.engine:
            raise RuntimeError("Engine not initialized. Call init() first.")

        async with self.engine.begin() as conn:
            if self.tables:

                def _create_tables(sync_conn: sa.Connection) -> None:
                    sqlm.SQLModel.metadata.create_all(
                        bind=sync_conn,
                        tables=[m.__table__ for m in self.tables],  # type: ignore[attr-defined]
                    )

                await conn.run_sync(_create_tables)
            else:
                await conn.run_sync(sqlm.SQLModel.metadata.create_all)

    async def drop_all(self) -> None:
        """Drop every SQLModel table. Destroys all data."""
        if not self.engine:
            raise RuntimeError("Engine not initialized. Call init() first.")

        async with self.engine.begin() as conn:
            await conn.run_sync(sqlm.SQLModel.metadata.drop_all)
