from __future__ import annotations

import datetime
import typing as t

import sqlmodel as sqlm

from consulta import utils
from consulta.lib.persistence import SessionDraft
from consulta.valueobj.session import SessionStatus


class SessionTable(sqlm.SQLModel, table=True):
    """Session record as stored in SQLite.

    Table: sessions
    """

    __tablename__ = "sessions"

    id: str = sqlm.Field(
        default_factory=lambda: utils.gen_id(prefix="session-"),
        primary_key=True,
        max_length=50,
        description="Session identifier handed back to the controller",
    )
    draft_key: str = sqlm.Field(
        index=True,
        unique=True,
        max_length=50,
        description="Client draft key, makes creation idempotent",
    )
    patient_id: str = sqlm.Field(
        index=True,
        max_length=50,
        description="Patient seen in this session",
    )
    user_id: str | None = sqlm.Field(
        default=None,
        nullable=True,
        max_length=50,
        description="Operator who ran the session",
    )
    title: str = sqlm.Field(max_length=255, description="Session title")
    status: str = sqlm.Field(
        default=SessionStatus.RECORDING.value,
        max_length=20,
        index=True,
        description="Session status (idle/recording/paused/completed)",
    )
    transcription_content: str = sqlm.Field(default="", description="Full transcript")
    started_at: datetime.datetime | None = sqlm.Field(default=None, nullable=True)
    ended_at: datetime.datetime | None = sqlm.Field(default=None, nullable=True)
    elapsed_seconds: float = sqlm.Field(default=0.0, ge=0)
    duration: str = sqlm.Field(default="00:00:00", max_length=20)
    created_at: datetime.datetime = sqlm.Field(default_factory=utils.utcnow, nullable=False)
    updated_at: datetime.datetime | None = sqlm.Field(default=None, nullable=True)

    @classmethod
    def from_draft(cls, draft: SessionDraft) -> t.Self:
        return cls(
            draft_key=draft.key,
            patient_id=draft.patient_id,
            user_id=draft.user_id,
            title=draft.title,
            status=draft.status.value,
            started_at=draft.started_at,
        )

    def apply(self, changes: dict[str, t.Any]) -> None:
        """Write the fields of a session patch onto the row."""
        for name, value in changes.items():
            setattr(self, COLUMNS.get(name, name), value)
        self.updated_at = utils.utcnow()

    def __repr__(self) -> str:
        return f"TABLE <{self.__class__.__name__}(id={self.id!r}, status={self.status!r})>"


COLUMNS: dict[str, str] = {"transcript": "transcription_content"}
"""Patch field names that are stored under another column name."""

TABLES: set[type[sqlm.SQLModel]] = {SessionTable}
