from __future__ import annotations

import copy
import typing as t

from consulta import utils
from consulta.lib.persistence import SessionDraft
from consulta.lib.persistence import SessionGateway
from consulta.lib.persistence import SessionPatch


class InMemorySessionGateway(SessionGateway):
    """Session gateway that keeps records in a dict.

    Used when no database is configured and in tests. Every call is
    recorded in `calls` in the order it was made.

    Example:
        ```python
        gateway = InMemorySessionGateway()
        session_id = await gateway.create_session(draft)
        await gateway.update_session(session_id, SessionPatch(status=SessionStatus.PAUSED))
        print(gateway.records[session_id]["status"])  # "paused"
        ```
    """

    def __init__(self) -> None:
        self.records: dict[str, dict[str, t.Any]] = {}
        self.keys: dict[str, str] = {}
        self.calls: list[tuple[str, str, dict[str, t.Any]]] = []

    async def create_session(self, draft: SessionDraft, /) -> str:
        self.calls.append(("create", draft.key, draft.model_dump()))
        if draft.key in self.keys:
            return self.keys[draft.key]

        session_id = utils.gen_id(prefix="session-")
        self.keys[draft.key] = session_id
        self.records[session_id] = {
            "id": session_id,
            "draft_key": draft.key,
            "patient_id": draft.patient_id,
            "user_id": draft.user_id,
            "title": draft.title,
            "status": draft.status.value,
            "transcript": "",
            "started_at": draft.started_at,
            "ended_at": None,
            "elapsed_seconds": 0.0,
            "duration": utils.format_duration(0),
        }
        return session_id

    async def update_session(self, session_id: str, patch: SessionPatch, /) -> bool:
        changes = patch.changes()
        self.calls.append(("update", session_id, changes))
        record = self.records.get(session_id)
        if record is None:
            return False
        record.update(changes)
        return True

    def snapshot(self, session_id: str) -> dict[str, t.Any]:
        """A copy of the stored record."""
        return copy.deepcopy(self.records[session_id])

    def updates(self, session_id: str) -> list[dict[str, t.Any]]:
        """The patches applied to a record, oldest first."""
        return [c for op, sid, c in self.calls if op == "update" and sid == session_id]
