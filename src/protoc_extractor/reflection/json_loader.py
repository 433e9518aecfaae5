"""Load a JSON dump of a reflected descriptor graph.

Type references in the dump are qualified names; they are bound lazily so
forward and cyclic references between messages resolve without ordering.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from protoc_extractor.errors import DescriptorLoadError
from protoc_extractor.models import FieldKind
from protoc_extractor.naming import DEFAULT_NAMESPACE, in_namespace
from protoc_extractor.reflection.descriptors import (
    Lazy,
    MapValue,
    ReflectedEnum,
    ReflectedField,
    ReflectedMessage,
    RepeatType,
)


class _DescriptorTable:
    def __init__(self, enums: Dict[str, Dict[str, int]], namespace: str) -> None:
        self.namespace = namespace
        self.messages: Dict[str, ReflectedMessage] = {}
        self.enums = {name: ReflectedEnum(name, dict(values)) for name, values in enums.items()}

    def register(self, type_name: str) -> ReflectedMessage:
        if type_name not in self.messages:
            self.messages[type_name] = ReflectedMessage(type_name)
        return self.messages[type_name]

    def message(self, type_name: str) -> ReflectedMessage:
        if type_name in self.messages:
            return self.messages[type_name]
        # Namespace types would be expanded, so they must be in the dump.
        if in_namespace(type_name, self.namespace):
            raise DescriptorLoadError(f"Message '{type_name}' is not present in the dump")
        # External types (google.protobuf.*) are never expanded; an empty
        # descriptor is enough.
        return self.register(type_name)

    def enum(self, type_name: str) -> ReflectedEnum:
        try:
            return self.enums[type_name]
        except KeyError:
            raise DescriptorLoadError(f"Enum '{type_name}' is not present in the dump") from None

    def reference(self, kind: Any, raw: Any) -> Any:
        if kind == FieldKind.MESSAGE and isinstance(raw, str):
            return Lazy(lambda: self.message(raw))
        if kind == FieldKind.ENUM and isinstance(raw, str):
            return Lazy(lambda: self.enum(raw))
        return raw


def _parse_field(raw: Dict[str, Any], table: _DescriptorTable) -> ReflectedField:
    kind = raw.get("kind")
    value = raw.get("V")
    if isinstance(value, dict):
        value_kind = value.get("kind")
        value = MapValue(value_kind, table.reference(value_kind, value.get("T")))
    try:
        return ReflectedField(
            no=raw["no"],
            name=raw["name"],
            kind=kind,
            target=table.reference(kind, raw.get("T")),
            key_type=raw.get("K"),
            value_type=value,
            opt=bool(raw.get("opt", False)),
            repeat=RepeatType(raw.get("repeat") or 0),
            oneof=raw.get("oneof"),
        )
    except KeyError as exc:
        raise DescriptorLoadError(f"Field is missing required key {exc}") from None
    except ValueError as exc:
        raise DescriptorLoadError(f"Field '{raw.get('name')}' has an invalid repeat flag: {exc}") from None


def parse_descriptors(
    data: Dict[str, Any],
    namespace: str = DEFAULT_NAMESPACE,
) -> List[ReflectedMessage]:
    """Turn a decoded dump into root descriptors, in dump order."""
    if not isinstance(data, dict) or not isinstance(data.get("messages"), list):
        raise DescriptorLoadError("Descriptor dump must be an object with a 'messages' list")

    table = _DescriptorTable(data.get("enums") or {}, namespace)
    roots: List[ReflectedMessage] = []
    for raw_message in data["messages"]:
        type_name = raw_message.get("typeName")
        if not isinstance(type_name, str):
            raise DescriptorLoadError(f"Message entry without a typeName: {raw_message!r}")
        message = table.register(type_name)
        message.fields = [_parse_field(f, table) for f in raw_message.get("fields", [])]
        roots.append(message)
    return roots


def load_descriptors(
    file_path: str,
    namespace: str = DEFAULT_NAMESPACE,
) -> List[ReflectedMessage]:
    """Read a descriptor dump from disk."""
    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DescriptorLoadError(f"Cannot read {file_path}: {exc}") from None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DescriptorLoadError(f"{file_path} is not valid JSON: {exc}") from None
    return parse_descriptors(data, namespace)
