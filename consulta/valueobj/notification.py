from __future__ import annotations

from consulta.valueobj import EnumValueObject


class NotificationLevel(EnumValueObject):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
