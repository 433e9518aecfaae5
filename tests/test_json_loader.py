import json

import pytest

from protoc_extractor.errors import DescriptorLoadError
from protoc_extractor.extractor.schema_registry import extract_protos
from protoc_extractor.generator.proto_generator import generate_proto
from protoc_extractor.models import FieldKind
from protoc_extractor.reflection.descriptors import (
    Lazy,
    MapValue,
    ReflectedEnum,
    ReflectedMessage,
    RepeatType,
)
from protoc_extractor.reflection.json_loader import load_descriptors, parse_descriptors


def _dump(messages, enums=None) -> dict:
    data = {"messages": messages}
    if enums is not None:
        data["enums"] = enums
    return data


class TestParseDescriptors:
    def test_scalar_field(self):
        roots = parse_descriptors(_dump([{
            "typeName": "discord_protos.foo.v1.Bar",
            "fields": [{"no": 1, "name": "id", "kind": "scalar", "T": 4,
                        "opt": True, "repeat": 2, "oneof": "pick"}],
        }]))

        assert len(roots) == 1
        field = roots[0].fields[0]
        assert roots[0].type_name == "discord_protos.foo.v1.Bar"
        assert (field.no, field.name, field.kind, field.target) == (1, "id", "scalar", 4)
        assert field.opt is True
        assert field.repeat is RepeatType.UNPACKED
        assert field.oneof == "pick"

    def test_message_reference_binds_to_dump_entry(self):
        roots = parse_descriptors(_dump([
            {"typeName": "discord_protos.foo.Outer",
             "fields": [{"no": 1, "name": "inner", "kind": "message", "T": "discord_protos.foo.Inner"}]},
            {"typeName": "discord_protos.foo.Inner",
             "fields": [{"no": 1, "name": "name", "kind": "scalar", "T": 9}]},
        ]))

        outer, inner = roots
        target = outer.fields[0].target
        assert isinstance(target, Lazy)
        assert target() is inner

    def test_self_reference(self):
        roots = parse_descriptors(_dump([
            {"typeName": "discord_protos.tree.Node",
             "fields": [{"no": 1, "name": "next", "kind": "message", "T": "discord_protos.tree.Node"}]},
        ]))

        node = roots[0]
        assert node.fields[0].target() is node

    def test_external_message_is_empty(self):
        roots = parse_descriptors(_dump([
            {"typeName": "discord_protos.foo.Event",
             "fields": [{"no": 1, "name": "at", "kind": "message", "T": "google.protobuf.Timestamp"}]},
        ]))

        timestamp = roots[0].fields[0].target()
        assert isinstance(timestamp, ReflectedMessage)
        assert timestamp.type_name == "google.protobuf.Timestamp"
        assert timestamp.fields == []

    def test_enum_reference(self):
        roots = parse_descriptors(_dump(
            [{"typeName": "discord_protos.foo.Settings",
              "fields": [{"no": 1, "name": "theme", "kind": "enum", "T": "discord_protos.foo.Theme"}]}],
            enums={"discord_protos.foo.Theme": {"DARK": 1, "LIGHT": 2}},
        ))

        theme = roots[0].fields[0].target()
        assert isinstance(theme, ReflectedEnum)
        assert theme.values == {"DARK": 1, "LIGHT": 2}

    def test_map_field(self):
        roots = parse_descriptors(_dump([
            {"typeName": "discord_protos.foo.Index",
             "fields": [{"no": 1, "name": "by_id", "kind": "map", "K": 9,
                         "V": {"kind": "message", "T": "discord_protos.foo.Item"}}]},
            {"typeName": "discord_protos.foo.Item", "fields": []},
        ]))

        field = roots[0].fields[0]
        assert field.key_type == 9
        assert isinstance(field.value_type, MapValue)
        assert field.value_type.kind == FieldKind.MESSAGE
        assert field.value_type.target().type_name == "discord_protos.foo.Item"


class TestLoadErrors:
    def test_missing_namespace_message_is_reported_on_resolution(self):
        roots = parse_descriptors(_dump([
            {"typeName": "discord_protos.foo.Bar",
             "fields": [{"no": 1, "name": "x", "kind": "message", "T": "discord_protos.foo.Missing"}]},
        ]))

        with pytest.raises(DescriptorLoadError, match="Missing"):
            roots[0].fields[0].target()

    def test_missing_message_aborts_extraction(self):
        roots = parse_descriptors(_dump([
            {"typeName": "discord_protos.foo.Bar",
             "fields": [{"no": 1, "name": "x", "kind": "message", "T": "discord_protos.foo.Missing"}]},
        ]))

        with pytest.raises(DescriptorLoadError) as exc_info:
            extract_protos(roots)

        assert exc_info.value.field_name == "x"
        assert exc_info.value.message_name == "discord_protos.foo.Bar"

    def test_missing_message_outside_namespace_is_external(self):
        roots = parse_descriptors(
            _dump([{"typeName": "acme.api.Bar",
                    "fields": [{"no": 1, "name": "x", "kind": "message",
                                "T": "discord_protos.foo.Missing"}]}]),
            namespace="acme",
        )

        assert roots[0].fields[0].target().fields == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(DescriptorLoadError, match="Cannot read"):
            load_descriptors(str(tmp_path / "absent.json"))

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "dump.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(DescriptorLoadError, match="Cannot read"):
            load_descriptors(str(path))

    def test_missing_messages(self):
        with pytest.raises(DescriptorLoadError):
            parse_descriptors({"enums": {}})

    def test_missing_type_name(self):
        with pytest.raises(DescriptorLoadError):
            parse_descriptors(_dump([{"fields": []}]))

    def test_missing_field_key(self):
        with pytest.raises(DescriptorLoadError, match="no"):
            parse_descriptors(_dump([{"typeName": "discord_protos.a.B",
                                      "fields": [{"name": "x", "kind": "scalar", "T": 9}]}]))

    def test_unknown_enum_is_reported_on_resolution(self):
        roots = parse_descriptors(_dump([
            {"typeName": "discord_protos.foo.Settings",
             "fields": [{"no": 1, "name": "theme", "kind": "enum", "T": "discord_protos.foo.Missing"}]},
        ]))

        with pytest.raises(DescriptorLoadError, match="Missing"):
            roots[0].fields[0].target()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "dump.json"
        path.write_text("{not json")

        with pytest.raises(DescriptorLoadError):
            load_descriptors(str(path))


class TestRuntimeEnumTables:
    def test_reverse_entries_are_not_emitted(self):
        roots = parse_descriptors(_dump(
            [{"typeName": "discord_protos.foo.Settings",
              "fields": [{"no": 1, "name": "theme", "kind": "enum", "T": "discord_protos.foo.Theme"}]}],
            enums={"discord_protos.foo.Theme": {"DARK": 0, "LIGHT": 1, "0": "DARK", "1": "LIGHT"}},
        ))

        source = generate_proto(extract_protos(roots)["Settings"])

        assert "    THEME_DARK = 0;\n    THEME_LIGHT = 1;\n  }\n" in source
        assert "THEME_0" not in source
        assert "= DARK;" not in source


class TestLoadDescriptors:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "dump.json"
        path.write_text(json.dumps(_dump([{"typeName": "discord_protos.foo.Bar", "fields": []}])))

        roots = load_descriptors(str(path))

        assert [r.type_name for r in roots] == ["discord_protos.foo.Bar"]
