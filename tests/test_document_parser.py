"""Tests for patch document parsing and validation."""

import pytest

from spotpatch.document import (
    Anchor,
    SourceKind,
    SourceSpec,
    detect_format,
    load_document,
    parse_document,
    parse_document_bytes,
    parse_source,
)
from spotpatch.document.template import STARTER_DOCUMENT
from spotpatch.errors import ConfigError, SourceIOError


HELLO_TOML = """
[source]
text = "Hello!"

[[patch]]
do = "insert"
way = "post"
spot = 5
source = { text = ", World" }
"""


def _doc_with_patch(patch_body: str) -> str:
    return f'[source]\ntext = "abc"\n\n[[patch]]\n{patch_body}\n'


class TestParseToml:
    """TOML documents."""

    def test_parses_source_and_patches(self):
        doc = parse_document(HELLO_TOML)

        assert doc.source.kind is SourceKind.TEXT
        assert doc.source.text == "Hello!"
        assert len(doc.patches) == 1

        patch = doc.patches[0]
        assert patch.anchor is Anchor.POST
        assert patch.spot == 5
        assert patch.payload.text == ", World"
        assert patch.action == "insert"

    def test_patches_are_optional(self):
        doc = parse_document('[source]\ntext = "alone"\n')
        assert doc.patches == ()

    def test_patch_order_is_preserved(self):
        doc = parse_document(
            '[source]\ntext = "x"\n'
            + "".join(
                f'[[patch]]\nway = "pre"\nspot = 0\nsource = {{ text = "{i}" }}\n'
                for i in range(5)
            )
        )
        assert [p.payload.text for p in doc.patches] == ["0", "1", "2", "3", "4"]

    def test_do_defaults_to_insert_and_is_case_insensitive(self):
        doc = parse_document(
            _doc_with_patch('do = "INSERT"\nway = "PRE"\nspot = 1\nsource = { text = "z" }')
        )
        assert doc.patches[0].action == "insert"
        assert doc.patches[0].anchor is Anchor.PRE

    def test_all_source_kinds(self):
        doc = parse_document(
            """
[source]
bytes = [104, 105]

[[patch]]
way = "post"
spot = 0
source = { file = "payload.bin" }

[[patch]]
way = "post"
spot = 0
source = { url = "https://example.com/x" }

[[patch]]
way = "post"
spot = 0
source = { patch-file = "inner.toml" }

[[patch]]
way = "post"
spot = 0
source = { patch-url = "https://example.com/inner.toml" }
"""
        )
        assert doc.source.kind is SourceKind.BYTES
        assert doc.source.data == b"hi"
        assert [p.payload.kind for p in doc.patches] == [
            SourceKind.FILE,
            SourceKind.URL,
            SourceKind.NESTED_FILE,
            SourceKind.NESTED_URL,
        ]
        assert [p.payload.is_nested for p in doc.patches] == [False, False, True, True]

    def test_starter_document_is_valid(self):
        doc = parse_document(STARTER_DOCUMENT)
        assert doc.source.text == "Hello!"
        assert doc.patches[0].spot == 5


class TestParseYaml:
    """YAML documents use the same schema."""

    def test_parses_yaml(self):
        doc = parse_document(
            """
source:
  text: "Hello!"
patch:
  - way: post
    spot: 5
    source:
      text: ", World"
""",
            fmt="yaml",
        )
        assert doc.source.text == "Hello!"
        assert doc.patches[0].payload.text == ", World"

    def test_yaml_root_must_be_mapping(self):
        with pytest.raises(ConfigError, match="table/mapping"):
            parse_document("- just\n- a list\n", fmt="yaml")

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError, match="invalid YAML"):
            parse_document("source: [unclosed\n", fmt="yaml")


class TestValidationErrors:
    """Every malformed document is a ConfigError."""

    def test_invalid_toml(self):
        with pytest.raises(ConfigError, match="invalid TOML"):
            parse_document("[source\ntext = 1")

    def test_missing_source(self):
        with pytest.raises(ConfigError, match="source"):
            parse_document("[[patch]]\nway = 'pre'\nspot = 0\nsource = { text = 'x' }\n")

    def test_source_with_no_kind(self):
        with pytest.raises(ConfigError, match="exactly one"):
            parse_document("[source]\n")

    def test_source_with_two_kinds(self):
        with pytest.raises(ConfigError, match="found text, file"):
            parse_document('[source]\ntext = "a"\nfile = "b"\n')

    def test_unknown_source_key(self):
        with pytest.raises(ConfigError):
            parse_document('[source]\nstring = "a"\n')

    def test_byte_out_of_range(self):
        with pytest.raises(ConfigError, match="outside 0..255"):
            parse_document("[source]\nbytes = [1, 256]\n")

    def test_bytes_must_be_integers(self):
        with pytest.raises(ConfigError, match="not an integer"):
            parse_document('[source]\nbytes = [1, "2"]\n')

    def test_bytes_must_be_array(self):
        with pytest.raises(ConfigError, match="array of integers"):
            parse_document('[source]\nbytes = "abc"\n')

    def test_negative_spot(self):
        with pytest.raises(ConfigError, match="patch.0.spot"):
            parse_document(_doc_with_patch('way = "pre"\nspot = -1\nsource = { text = "x" }'))

    def test_float_spot(self):
        with pytest.raises(ConfigError, match="patch.0.spot"):
            parse_document(_doc_with_patch('way = "pre"\nspot = 1.0\nsource = { text = "x" }'))

    def test_unknown_way(self):
        with pytest.raises(ConfigError, match="patch.0.way"):
            parse_document(_doc_with_patch('way = "sideways"\nspot = 1\nsource = { text = "x" }'))

    def test_missing_way(self):
        with pytest.raises(ConfigError, match="way"):
            parse_document(_doc_with_patch('spot = 1\nsource = { text = "x" }'))

    def test_remove_is_not_supported(self):
        with pytest.raises(ConfigError, match="not supported"):
            parse_document(
                _doc_with_patch('do = "remove"\nway = "post"\nspot = 1\ncount = 1')
            )

    def test_unknown_action(self):
        with pytest.raises(ConfigError, match="unknown action"):
            parse_document(
                _doc_with_patch('do = "replace"\nway = "post"\nspot = 1\nsource = { text = "x" }')
            )

    def test_unknown_patch_key(self):
        with pytest.raises(ConfigError, match="not permitted"):
            parse_document(
                _doc_with_patch('way = "post"\nspot = 1\nsource = { text = "x" }\ncolour = "red"')
            )

    @pytest.mark.parametrize(
        "source, key",
        [
            ("data = [65]", "data"),
            ('patch_file = "x.toml"', "patch_file"),
            ('patch_url = "https://example.com/x.toml"', "patch_url"),
        ],
    )
    def test_source_field_names_are_not_keys(self, source, key):
        with pytest.raises(ConfigError, match=f"source: unknown key '{key}'"):
            parse_document(f"[source]\n{source}\n")

    @pytest.mark.parametrize(
        "body, key",
        [
            ('action = "insert"\nway = "post"\nspot = 1\nsource = { text = "x" }', "action"),
            ('anchor = "post"\nspot = 1\nsource = { text = "x" }', "anchor"),
            ('way = "post"\nspot = 1\npayload = { text = "x" }', "payload"),
        ],
    )
    def test_patch_field_names_are_not_keys(self, body, key):
        with pytest.raises(ConfigError, match=f"patch.0: unknown key '{key}'"):
            parse_document(_doc_with_patch(body))

    def test_patches_array_is_not_a_key(self):
        doc = (
            '[source]\ntext = "ab"\n\n'
            '[[patches]]\nanchor = "post"\nspot = 1\npayload = { text = "-" }\n'
        )
        with pytest.raises(ConfigError, match="did you mean 'patch'"):
            parse_document(doc)

    def test_yaml_field_names_are_not_keys(self):
        with pytest.raises(ConfigError, match="unknown key 'data'"):
            parse_document("source:\n  data: [65]\n", fmt="yaml")

    def test_error_carries_origin(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_document("[source]\n", origin="docs/a.toml")
        assert exc_info.value.target == "docs/a.toml"
        assert "docs/a.toml" in str(exc_info.value)

    def test_unsupported_format(self):
        with pytest.raises(ConfigError, match="unsupported document format"):
            parse_document("{}", fmt="json")

    def test_invalid_utf8_bytes(self):
        with pytest.raises(ConfigError, match="UTF-8"):
            parse_document_bytes(b"\xff\xfe[source]")


class TestDetectFormat:
    @pytest.mark.parametrize(
        "name, expected",
        [
            (None, "toml"),
            ("doc.toml", "toml"),
            ("doc", "toml"),
            ("dir/doc.yaml", "yaml"),
            ("DOC.YML", "yaml"),
            ("https://example.com/patches/doc.yml?rev=2", "yaml"),
            ("https://example.com/doc.yaml.toml", "toml"),
        ],
    )
    def test_detect_format(self, name, expected):
        assert detect_format(name) == expected


class TestLoadDocument:
    def test_loads_from_disk(self, write_document):
        path = write_document("hello.toml", HELLO_TOML)
        doc = load_document(path)
        assert doc.source.text == "Hello!"

    def test_loads_yaml_by_suffix(self, write_document):
        path = write_document("hello.yaml", "source:\n  text: hi\n")
        assert load_document(path).source.text == "hi"

    def test_missing_file_is_io_error(self, tmp_path):
        with pytest.raises(SourceIOError):
            load_document(tmp_path / "missing.toml")


class TestSourceSpec:
    def test_parse_source(self):
        spec = parse_source({"patch-url": "https://example.com/a.toml"})
        assert spec.kind is SourceKind.NESTED_URL
        assert spec.value == "https://example.com/a.toml"

    def test_parse_source_rejects_empty_table(self):
        with pytest.raises(ConfigError):
            parse_source({})

    def test_parse_source_rejects_field_names(self):
        with pytest.raises(ConfigError, match="unknown key 'patch_url'"):
            parse_source({"patch_url": "https://example.com/a.toml"})

    def test_construct_by_field_name(self):
        assert SourceSpec(data=b"\x00\x01").kind is SourceKind.BYTES
        assert SourceSpec(patch_file="a.toml").kind is SourceKind.NESTED_FILE

    def test_empty_bytes_count_as_populated(self):
        assert SourceSpec(data=b"").kind is SourceKind.BYTES

    def test_describe_truncates_long_values(self):
        described = SourceSpec(text="x" * 100).describe()
        assert described.startswith("text ")
        assert described.endswith("...'")
        assert len(described) < 60

    def test_describe_bytes(self):
        assert SourceSpec(data=b"abc").describe() == "bytes[3]"
