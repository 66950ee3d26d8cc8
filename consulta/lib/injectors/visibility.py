from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from consulta.config import Config
    from consulta.lib.diagnostics import Diagnostics
    from consulta.lib.visibility import VisibilityMonitor


def make_visibility(config: Config, diagnostics: Diagnostics) -> VisibilityMonitor:
    from consulta.lib.visibility import VisibilityMonitor

    return VisibilityMonitor(
        debounce=config.core.recording.visibility_debounce,
        diagnostics=diagnostics,
    )
