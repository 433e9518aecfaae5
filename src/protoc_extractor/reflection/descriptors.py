"""Reflected runtime descriptors, as exposed by a compiled protobuf runtime.

These mirror the shape of the runtime's own reflection objects: a message type
carries its qualified name and field infos; a field info carries a kind tag and
type references that may be scalar codes, eager descriptors or thunks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Union

from protoc_extractor.models import FieldKind


class RepeatType(IntEnum):
    NO = 0
    PACKED = 1
    UNPACKED = 2


class Lazy:
    """A memoized zero-argument thunk.

    The wrapped factory runs at most once; every call returns the same object.
    """

    __slots__ = ("_factory", "_value", "_resolved")

    def __init__(self, factory: Callable[[], Any]) -> None:
        self._factory = factory
        self._value: Any = None
        self._resolved = False

    @classmethod
    def of(cls, value: Any) -> Lazy:
        lazy = cls(lambda: value)
        lazy._value = value
        lazy._resolved = True
        return lazy

    @property
    def resolved(self) -> bool:
        return self._resolved

    def __call__(self) -> Any:
        if not self._resolved:
            self._value = self._factory()
            self._resolved = True
        return self._value

    def __repr__(self) -> str:
        if self._resolved:
            return f"Lazy({self._value!r})"
        return "Lazy(<unresolved>)"


@dataclass
class ReflectedEnum:
    """An enum value table. ``type_name`` may be empty."""

    type_name: str
    values: Dict[str, int] = field(default_factory=dict)


@dataclass
class ReflectedMessage:
    type_name: str
    fields: List[ReflectedField] = field(default_factory=list)


def as_lazy(ref: Any) -> Any:
    """Wrap callables and eager descriptors so every reference resolves once."""
    if isinstance(ref, Lazy):
        return ref
    if isinstance(ref, (ReflectedMessage, ReflectedEnum)):
        return Lazy.of(ref)
    if callable(ref):
        return Lazy(ref)
    return ref


@dataclass
class MapValue:
    """The value side of a map field: its own kind plus a type reference."""

    kind: Union[FieldKind, str]
    target: Any = None

    def __post_init__(self) -> None:
        self.target = as_lazy(self.target)


@dataclass
class ReflectedField:
    no: int
    name: str
    kind: Union[FieldKind, str]
    target: Any = None
    key_type: Any = None
    value_type: Any = None
    opt: bool = False
    repeat: RepeatType = RepeatType.NO
    oneof: Optional[str] = None

    def __post_init__(self) -> None:
        self.target = as_lazy(self.target)
        self.key_type = as_lazy(self.key_type)
        self.value_type = as_lazy(self.value_type)
