from __future__ import annotations

from consulta.config import Config
from consulta.config import build_config
from consulta.config import getconfig


def config() -> Config:
    try:
        return getconfig()
    except RuntimeError:
        return build_config()
