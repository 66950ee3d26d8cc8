from __future__ import annotations

from consulta.valueobj import EnumValueObject


class PermissionState(EnumValueObject):
    """Microphone permission as reported by the host platform."""

    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
