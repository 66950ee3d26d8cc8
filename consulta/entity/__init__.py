from __future__ import annotations

import functools
import typing as t

from consulta.entity.fields import FieldSpec


class EntityMeta(type):
    """Metaclass for Entity that collects all Field descriptors.

    Fields declared on base classes are collected first so a subclass can
    override them.
    """

    _fields: dict[str, FieldSpec[t.Any]]

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, t.Any]) -> EntityMeta:
        cls = super().__new__(mcs, name, bases, namespace)

        fields: dict[str, FieldSpec[t.Any]] = {}
        for base in reversed(cls.__mro__[1:-1]):
            fields.update(getattr(base, "_fields", {}))
        for key, value in namespace.items():
            if isinstance(value, FieldSpec):
                fields[key] = value

        cls._fields = fields
        return cls


class Entity(metaclass=EntityMeta):
    """Base entity class with field-based attribute management.

    Example:
        ```python
        class Patient(Entity):
            name = StringField()
            email = StringField(nullable=True)


        patient = Patient(name="Ana")
        print(patient.dumps())  # {"name": "Ana"}
        ```
    """

    if t.TYPE_CHECKING:
        _fields: t.ClassVar[dict[str, FieldSpec[t.Any]]]

    def __init__(self, **kwargs: t.Any) -> None:
        unknown = set(kwargs) - set(self._fields)
        if unknown:
            raise TypeError(f"Unknown fields for {type(self).__name__}: {sorted(unknown)}")
        for field_name in self._fields:
            if field_name in kwargs:
                setattr(self, field_name, kwargs[field_name])

    def dumps(self) -> dict[str, t.Any]:
        """Convert entity to a dictionary of the fields that hold a value."""
        result: dict[str, t.Any] = {}
        for field_name in self._fields:
            try:
                value = getattr(self, field_name)
            except AttributeError:
                continue
            if isinstance(value, Entity):
                value = value.dumps()
            result[field_name] = value
        return result

    def __repr__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self.dumps().items())
        return f"ENTITY <{self.__class__.__name__}({attrs})>"


class Touchable(t.Protocol):
    def touch(self) -> None: ...


TT = t.TypeVar("TT", bound=Touchable)
P = t.ParamSpec("P")
R = t.TypeVar("R")


def touch_after(func: t.Callable[t.Concatenate[TT, P], R]) -> t.Callable[t.Concatenate[TT, P], R]:
    """Decorator that calls `touch()` after the wrapped method returns.

    Nothing is touched when the method raises.
    """

    @functools.wraps(func)
    def wrapper(self: TT, *args: P.args, **kwargs: P.kwargs) -> R:
        result = func(self, *args, **kwargs)
        self.touch()
        return result

    return wrapper
