from __future__ import annotations

import builtins
import enum
import typing as t

from consulta.exceptions import ValidationError


class EnumValueObject(enum.Enum):
    @classmethod
    def parse(cls, value: str) -> t.Self:
        try:
            return cls(value)
        except ValueError as e:
            raise ValidationError(
                f"Invalid value '{value}' for enum '{cls.__name__}'. "
                f"Allowed values are: {cls.list()}",
                reason="invalid_enum_value",
            ) from e

    @classmethod
    def list(cls) -> builtins.list[str]:
        return [member.value for member in cls]

    def __repr__(self) -> str:
        return f"ENUM VALUEOBJECT <{self.__class__.__name__}.{self.name}>"

    def __str__(self) -> str:
        return str(self.value)
