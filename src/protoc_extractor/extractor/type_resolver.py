"""Resolve a field's reflected type reference into a proto type string."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from protoc_extractor.errors import UnknownFieldKind, UnknownScalarCode
from protoc_extractor.models import FieldKind, Struct
from protoc_extractor.naming import in_namespace, split_qualified_name
from protoc_extractor.reflection.descriptors import Lazy, ReflectedEnum

if TYPE_CHECKING:
    from protoc_extractor.extractor.struct_collector import StructCollector

# Runtime scalar type code -> proto keyword. 10, 11 and 14 are group, message
# and enum in descriptor.proto and never appear as scalar codes.
SCALAR_TYPES: Dict[int, str] = {
    1: "double",
    2: "float",
    3: "int64",
    4: "uint64",
    5: "int32",
    6: "fixed64",
    7: "fixed32",
    8: "bool",
    9: "string",
    12: "bytes",
    13: "uint32",
    15: "sfixed32",
    16: "sfixed64",
    17: "sint32",
    18: "sint64",
}


def resolve_scalar(code: int) -> str:
    try:
        return SCALAR_TYPES[code]
    except (KeyError, TypeError):
        raise UnknownScalarCode(f"Unknown scalar type code: {code!r}") from None


def resolve_kind(kind: Any) -> FieldKind:
    try:
        return FieldKind(kind)
    except (ValueError, TypeError):
        raise UnknownFieldKind(f"Unknown field kind: {kind!r}") from None


def resolve_type_name(spec: Any, namespace: str) -> str:
    """Return the proto type string for a field, map key or map value.

    ``spec`` is a scalar code, a thunk yielding a field-like object, or a
    field-like object with a ``kind`` tag.
    """
    if isinstance(spec, Lazy):
        spec = spec()
    elif isinstance(spec, int):
        return resolve_scalar(spec)

    kind = resolve_kind(getattr(spec, "kind", spec))

    if kind is FieldKind.SCALAR:
        return resolve_scalar(spec.target)
    if kind is FieldKind.MAP:
        key = resolve_type_name(spec.key_type, namespace)
        value = resolve_type_name(spec.value_type, namespace)
        return f"map<{key}, {value}>"

    # Message and enum share the namespace rule: local types are referenced by
    # short name, foreign ones (google.protobuf.*) by qualified name.
    type_name = spec.target().type_name
    if in_namespace(type_name, namespace):
        _, type_name = split_qualified_name(type_name)
    return type_name


def _type_references(spec: Any) -> List[Lazy]:
    refs: List[Lazy] = []
    for ref in (
        getattr(spec, "target", None),
        getattr(spec, "key_type", None),
        getattr(spec, "value_type", None),
    ):
        # Map values wrap their own reference one level down.
        ref = getattr(ref, "target", None) or ref
        if isinstance(ref, Lazy):
            refs.append(ref)
    return refs


def discover_structs(spec: Any, collector: StructCollector) -> List[Struct]:
    """Build definitions for every namespace type a field introduces.

    Each nested message contributes its own transitively discovered structs
    first, followed by itself with its struct list cleared.
    """
    if isinstance(spec, Lazy):
        spec = spec()
    structs: List[Struct] = []
    for ref in _type_references(spec):
        resolved = ref()
        if isinstance(resolved, ReflectedEnum):
            if resolved.type_name and not in_namespace(resolved.type_name, collector.namespace):
                continue
            structs.append(collector.collect_enum(resolved))
            continue

        type_name = getattr(resolved, "type_name", "")
        if not type_name or not in_namespace(type_name, collector.namespace):
            continue
        if collector.has_visited(type_name):
            continue
        nested = collector.collect(resolved)
        structs.extend(nested.structs)
        structs.append(replace(nested, structs=[]))
    return structs


def resolve_field_type(spec: Any, collector: StructCollector) -> Tuple[str, List[Struct]]:
    """Return ``(type_string, nested_structs)`` for one field."""
    type_name = resolve_type_name(spec, collector.namespace)
    return type_name, discover_structs(spec, collector)
