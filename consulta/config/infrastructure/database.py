from __future__ import annotations

from pydantic import Field

from consulta.helper.settings import BaseModel


class SQLiteConfig(BaseModel):
    uri: str = Field(
        default="sqlite+aiosqlite:///./consulta.db",
        description="SQLite database URI (aiosqlite driver).",
    )

    echo: bool = Field(
        default=False,
        description="Enable SQL statement logging for debugging purposes.",
    )

    create_tables: bool = Field(
        default=True,
        description="Create missing tables on startup.",
    )
