"""Flatten a reflected message into a MessageDescriptor with its nested structs."""

from __future__ import annotations

import math
from typing import List, Set, Tuple

from protoc_extractor.errors import ExtractionError
from protoc_extractor.extractor.type_resolver import resolve_field_type, resolve_kind
from protoc_extractor.models import (
    EnumDescriptor,
    EnumValue,
    FieldDescriptor,
    MessageDescriptor,
    Struct,
)
from protoc_extractor.naming import (
    DEFAULT_NAMESPACE,
    split_qualified_name,
    strip_namespace,
    to_screaming_snake,
)
from protoc_extractor.reflection.descriptors import (
    ReflectedEnum,
    ReflectedField,
    ReflectedMessage,
    RepeatType,
)


def dedupe_structs(structs: List[Struct]) -> List[Struct]:
    """Keep the first struct of each name, in discovery order.

    Later structs with the same short name are dropped even if their
    contents differ.
    """
    seen: Set[str] = set()
    result: List[Struct] = []
    for struct in structs:
        if struct.name in seen:
            continue
        seen.add(struct.name)
        result.append(struct)
    return result


def is_reverse_mapping(key: str, number: object) -> bool:
    """True for the runtime's number -> name entries in an enum table."""
    if not isinstance(number, int) or isinstance(number, bool):
        return True
    try:
        return not math.isnan(float(key))
    except ValueError:
        return False


def enum_value_name(prefix: str, raw_name: str) -> str:
    """Prepend the enum prefix unless the runtime left it in place."""
    return raw_name if raw_name.startswith(prefix) else prefix + raw_name


class StructCollector:
    """Builds descriptors for one root message and everything it reaches.

    A collector remembers every message it has started, so self-referential
    and mutually recursive types are only descended once.
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.namespace = namespace
        self._visited: Set[str] = set()

    def has_visited(self, type_name: str) -> bool:
        return type_name in self._visited

    def collect(self, message: ReflectedMessage) -> MessageDescriptor:
        self._visited.add(message.type_name)

        fields: List[FieldDescriptor] = []
        structs: List[Struct] = []
        for reflected in message.fields:
            try:
                descriptor, nested = self._flatten_field(reflected)
            except ExtractionError as exc:
                exc.locate(reflected.name, message.type_name)
                raise
            fields.append(descriptor)
            structs.extend(nested)

        package, name = split_qualified_name(message.type_name)
        return MessageDescriptor(
            package=strip_namespace(package, self.namespace),
            name=name,
            fields=fields,
            structs=dedupe_structs(structs),
        )

    def collect_enum(self, enum: ReflectedEnum) -> EnumDescriptor:
        _, name = split_qualified_name(enum.type_name)
        prefix = to_screaming_snake(name) + "_"
        return EnumDescriptor(
            name=name,
            values=[
                EnumValue(name=enum_value_name(prefix, key), number=number)
                for key, number in enum.values.items()
                if not is_reverse_mapping(key, number)
            ],
        )

    def _flatten_field(self, reflected: ReflectedField) -> Tuple[FieldDescriptor, List[Struct]]:
        type_name, structs = resolve_field_type(reflected, self)
        repeat = RepeatType(reflected.repeat or RepeatType.NO)
        descriptor = FieldDescriptor(
            number=reflected.no,
            name=reflected.name,
            kind=resolve_kind(reflected.kind),
            type=type_name,
            oneof=reflected.oneof or None,
            optional=bool(reflected.opt),
            repeated=repeat is not RepeatType.NO,
            unpacked=repeat is RepeatType.UNPACKED,
        )
        return descriptor, structs
