from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List

from jinja2 import Environment, FileSystemLoader

from protoc_extractor.errors import (
    ExtractionError,
    InvalidUnpackedFlag,
    UnrecognizedStructKind,
)
from protoc_extractor.models import (
    EnumDescriptor,
    FieldDescriptor,
    MessageDescriptor,
    Struct,
)
from protoc_extractor.naming import to_snake_case

WELL_KNOWN_MARKER = "google.protobuf"

# Both are imported whenever any well-known type is referenced; the
# generator does not track which one.
WELL_KNOWN_IMPORTS: List[str] = [
    "google/protobuf/wrappers.proto",
    "google/protobuf/timestamp.proto",
]

INDENT = "  "


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def format_field(field: FieldDescriptor) -> str:
    """Render one field declaration, without indentation."""
    if field.unpacked and not field.repeated:
        raise InvalidUnpackedFlag(
            f"Field {field.name} is not repeated but has unpacked set",
            field_name=field.name,
        )
    if field.optional:
        modifier = "optional "
    elif field.repeated:
        modifier = "repeated "
    else:
        modifier = ""
    options = " [packed = false]" if field.unpacked else ""
    return f"{modifier}{field.type} {field.name} = {field.number}{options};"


def _field_lines(fields: List[FieldDescriptor], depth: int) -> List[str]:
    """Oneof blocks first, in order of first appearance, then plain fields."""
    pad = INDENT * depth
    groups: Dict[str, List[FieldDescriptor]] = {}
    plain: List[FieldDescriptor] = []
    for field in fields:
        if field.oneof:
            groups.setdefault(field.oneof, []).append(field)
        else:
            plain.append(field)

    lines: List[str] = []
    for group_name, members in groups.items():
        lines.append(f"{pad}oneof {to_snake_case(group_name)} {{")
        lines.extend(f"{pad}{INDENT}{format_field(f)}" for f in members)
        lines.append(f"{pad}}}")
    lines.extend(f"{pad}{format_field(f)}" for f in plain)
    return lines


def _struct_lines(struct: Struct) -> List[str]:
    if isinstance(struct, EnumDescriptor):
        body = [f"{INDENT * 2}{v.name.upper()} = {v.number};" for v in struct.values]
    elif isinstance(struct, MessageDescriptor):
        # Nested messages hold no structs of their own: everything they reach
        # is flattened into the enclosing message as a sibling.
        body = _field_lines(struct.fields, 2)
    else:
        kind = getattr(struct, "kind", type(struct).__name__)
        raise UnrecognizedStructKind(f"Unknown struct kind: {kind}")
    return [f"{INDENT}{struct.kind} {struct.name} {{", *body, f"{INDENT}}}", ""]


def _body_lines(message: MessageDescriptor) -> List[str]:
    lines: List[str] = []
    for struct in message.structs:
        try:
            lines.extend(_struct_lines(struct))
        except ExtractionError as exc:
            exc.locate(message_name=getattr(struct, "name", None))
            raise
    lines.extend(_field_lines(message.fields, 1))
    return lines


def generate_proto(message: MessageDescriptor) -> str:
    """Generate the .proto source for one root message."""
    try:
        body = _body_lines(message)
    except ExtractionError as exc:
        exc.locate(message_name=message.name)
        raise

    env = _get_template_env()
    template = env.get_template("proto.j2")
    return template.render(
        needs_imports=any(WELL_KNOWN_MARKER in line for line in body),
        imports=WELL_KNOWN_IMPORTS,
        package=message.package,
        name=message.name,
        body=body,
    )


def proto_file_name(message: MessageDescriptor) -> str:
    return f"{message.name}.proto"


def generate_protos(
    messages: Iterable[MessageDescriptor],
    output_dir: str,
) -> List[str]:
    """Generate a .proto file for every root message.

    Returns list of generated file paths.
    """
    os.makedirs(output_dir, exist_ok=True)

    generated: List[str] = []
    for message in messages:
        source = generate_proto(message)
        file_path = os.path.join(output_dir, proto_file_name(message))
        Path(file_path).write_text(source)
        generated.append(file_path)

    return generated
