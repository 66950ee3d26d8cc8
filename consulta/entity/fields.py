# ruff: noqa: N802
from __future__ import annotations

import datetime
import typing as t

if t.TYPE_CHECKING:
    from consulta.entity import Entity


T = t.TypeVar("T")


class FieldSpec(t.Generic[T]):
    """A descriptor for entity fields with default value, nullability and
    write-once support.

    Attributes:
        default: The default value for the field.
        default_factory: A callable that returns the default value.
        nullable: Whether the field can be None.
        immutable: Whether the field is write-once. A nullable immutable
            field may be assigned once it leaves None.
        name: The public name of the field (set by __set_name__).
        private_name: The private attribute name for storing the value.
    """

    def __init__(
        self,
        *,
        default: T | None = None,
        default_factory: t.Callable[[], T] | None = None,
        nullable: bool = False,
        immutable: bool = False,
    ) -> None:
        self.default = default
        self.default_factory = default_factory
        self.nullable = nullable
        self.immutable = immutable
        self.name: str = ""
        self.private_name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.private_name = f"_field_{name}"

    @t.overload
    def __get__(self, obj: None, objtype: type[t.Any] | None = None) -> t.Self: ...
    @t.overload
    def __get__(self, obj: Entity, objtype: type[t.Any] | None = None) -> T: ...
    def __get__(self, obj: Entity | None, objtype: type[t.Any] | None = None) -> T | t.Self:
        if obj is None:
            return self

        if not hasattr(obj, self.private_name):
            if self.default_factory is not None:
                value = self.default_factory()
            elif self.default is not None:
                value = self.default
            elif self.nullable:
                value = None
            else:
                raise AttributeError(f"Field '{self.name}' has not been set")
            setattr(obj, self.private_name, value)

        return t.cast(T, getattr(obj, self.private_name))

    def __set__(self, obj: Entity, value: T) -> None:
        if self.immutable and getattr(obj, self.private_name, None) is not None:
            raise AttributeError(f"Field '{self.name}' is immutable")

        if value is None and not self.nullable:
            raise ValueError(f"Field '{self.name}' cannot be None")

        setattr(obj, self.private_name, value)

    def __delete__(self, obj: Entity) -> None:
        if self.immutable:
            raise AttributeError(f"Field '{self.name}' is immutable")
        if hasattr(obj, self.private_name):
            delattr(obj, self.private_name)


class StringBackedFieldSpec(FieldSpec[T]):
    """A field descriptor for enum values persisted as strings."""

    def __init__(self, field_type: type[T], **kwargs: t.Any) -> None:
        super().__init__(**kwargs)
        self.field_type = field_type

    def __set__(self, obj: Entity, value: T) -> None:
        if value is not None and not isinstance(value, self.field_type):
            value = self.field_type(value)  # type: ignore[call-arg]
        super().__set__(obj, value)


def StringBackedField(
    field_type: type[T],
    *,
    default: T | None = None,
    nullable: bool = False,
    immutable: bool = False,
) -> t.Any:
    return StringBackedFieldSpec(
        field_type, default=default, nullable=nullable, immutable=immutable
    )


def StringField(
    *,
    default: str | None = None,
    default_factory: t.Callable[[], str] | None = None,
    nullable: bool = False,
    immutable: bool = False,
) -> t.Any:
    return FieldSpec[str](
        default=default,
        default_factory=default_factory,
        nullable=nullable,
        immutable=immutable,
    )


def FloatField(
    *,
    default: float | None = None,
    nullable: bool = False,
    immutable: bool = False,
) -> t.Any:
    return FieldSpec[float](default=default, nullable=nullable, immutable=immutable)


def DateTimeField(
    *,
    default_factory: t.Callable[[], datetime.datetime] | None = None,
    nullable: bool = False,
    immutable: bool = False,
) -> t.Any:
    return FieldSpec[datetime.datetime](
        default_factory=default_factory,
        nullable=nullable,
        immutable=immutable,
    )
