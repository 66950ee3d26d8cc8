from __future__ import annotations

import sqlalchemy.exc as saexc
import sqlmodel as sqlm

from consulta.exceptions import PersistenceError
from consulta.lib.database.sqlite import SQLite
from consulta.lib.persistence import SessionDraft
from consulta.lib.persistence import SessionGateway
from consulta.lib.persistence import SessionPatch
from consulta.lib.persistence.tables import SessionTable


class SQLiteSessionGateway(SessionGateway):
    """Session gateway backed by the `sessions` SQLite table.

    Database errors are reported as `PersistenceError` so the retrying
    caller treats them as transient.
    """

    def __init__(self, sqlite: SQLite) -> None:
        self.sqlite = sqlite

    async def create_session(self, draft: SessionDraft, /) -> str:
        try:
            existing = await self._find_by_key(draft.key)
            if existing is not None:
                return existing

            async with self.sqlite.session() as session:
                row = SessionTable.from_draft(draft)
                session.add(row)
                try:
                    await session.commit()
                except saexc.IntegrityError:
                    # A concurrent create with the same key won.
                    await session.rollback()
                    existing = await self._find_by_key(draft.key)
                    if existing is None:
                        raise
                    return existing
                return row.id
        except saexc.SQLAlchemyError as e:
            raise PersistenceError(operation="create") from e

    async def update_session(self, session_id: str, patch: SessionPatch, /) -> bool:
        try:
            async with self.sqlite.session() as session:
                row = await session.get(SessionTable, session_id)
                if row is None:
                    return False
                row.apply(patch.changes())
                session.add(row)
                await session.commit()
                return True
        except saexc.SQLAlchemyError as e:
            raise PersistenceError(operation="update", session_id=session_id) from e

    async def read_session(self, session_id: str) -> SessionTable | None:
        """Load a stored record, mainly for inspection."""
        try:
            async with self.sqlite.session() as session:
                return await session.get(SessionTable, session_id)
        except saexc.SQLAlchemyError as e:
            raise PersistenceError(operation="read", session_id=session_id) from e

    async def _find_by_key(self, key: str) -> str | None:
        async with self.sqlite.session() as session:
            stmt = sqlm.select(SessionTable.id).where(SessionTable.draft_key == key)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()
