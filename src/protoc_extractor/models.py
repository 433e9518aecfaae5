from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Union


class FieldKind(str, Enum):
    SCALAR = "scalar"
    MESSAGE = "message"
    ENUM = "enum"
    MAP = "map"


@dataclass
class FieldDescriptor:
    number: int
    name: str
    kind: FieldKind
    type: str
    oneof: Optional[str] = None
    optional: bool = False
    repeated: bool = False
    unpacked: bool = False


@dataclass
class EnumValue:
    name: str
    number: int


@dataclass
class EnumDescriptor:
    name: str
    values: List[EnumValue] = field(default_factory=list)

    kind: ClassVar[str] = "enum"


@dataclass
class MessageDescriptor:
    package: str
    name: str
    fields: List[FieldDescriptor] = field(default_factory=list)
    structs: List[Struct] = field(default_factory=list)

    kind: ClassVar[str] = "message"


Struct = Union[MessageDescriptor, EnumDescriptor]
