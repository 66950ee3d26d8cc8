from __future__ import annotations

import typing as t

from consulta.helper.mixin import LoggingMixin

if t.TYPE_CHECKING:
    from consulta.lib.diagnostics import Diagnostics


class BaseService(LoggingMixin):
    __logtag__ = "consulta.service"

    def __init_subclass__(cls, **kwargs: t.Any) -> None:
        cls.__logtag__ = f"consulta.service:{cls.__name__}"
        super().__init_subclass__(**kwargs)

    def __init__(self, diagnostics: Diagnostics | None = None) -> None:
        super().__init__(diagnostics)
