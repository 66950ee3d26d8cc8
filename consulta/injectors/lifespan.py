from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from consulta.config import Config
    from consulta.lib.capture import CaptureDevice
    from consulta.lib.database.sqlite import SQLite
    from consulta.lib.diagnostics import Diagnostics
    from consulta.lifespan import LifeSpan


def lifespan(
    config: Config,
    diagnostics: Diagnostics,
    sqlite: SQLite,
    capture: CaptureDevice,
) -> LifeSpan:
    from consulta.lifespan import LifeSpan

    contexts: list[object] = [config]
    if config.infrastructure.persistence.backend == "sqlite":
        contexts.append(sqlite)
    contexts.append(capture)
    return LifeSpan(*contexts, diagnostics=diagnostics)
