from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from consulta.config import Config
    from consulta.lib.diagnostics import Diagnostics


def make_diagnostics(config: Config) -> Diagnostics:
    from consulta.lib.diagnostics import Diagnostics

    return Diagnostics(capacity=config.core.recording.diagnostics_capacity)
