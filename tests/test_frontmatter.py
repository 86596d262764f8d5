"""Tests for HOLON.md parsing and rendering."""

from pathlib import Path

import pytest

from who.errors import MalformedRecordError
from who.frontmatter import parse_frontmatter, render_holon_md, write_holon_md
from who.types import Identity, new_identity

VALID = """---
uuid: "test-uuid-1234"
given_name: "TestHolon"
family_name: "Prober"
motto: "Test all the things."
composer: "B. ALTER"
clade: "deterministic/pure"
status: draft
born: "2026-01-01"
parents: []
reproduction: "manual"
generated_by: "test"
lang: "go"
proto_status: draft
---

# TestHolon Prober

> *"Test all the things."*
"""


def _full_identity(**overrides) -> Identity:
    identity = Identity(
        uuid="3f2b8c1e-0000-4000-8000-000000000001",
        given_name="Swift",
        family_name="Transcriber",
        motto="Hear it once.",
        composer="B. ALTER",
        clade="probabilistic/perceptual",
        status="stable",
        born="2026-02-12",
        parents=["parent-1", "parent-2"],
        reproduction="assisted",
        aliases=["swifty"],
        generated_by="sophia-who",
        lang="python",
        proto_status="draft",
    )
    for key, value in overrides.items():
        setattr(identity, key, value)
    return identity


class TestParseFrontmatter:

    def test_parses_fields(self):
        identity, body = parse_frontmatter(VALID.encode())
        assert identity.uuid == "test-uuid-1234"
        assert identity.given_name == "TestHolon"
        assert identity.family_name == "Prober"
        assert identity.clade == "deterministic/pure"
        assert identity.status == "draft"
        assert identity.parents == []
        assert identity.aliases == []

    def test_body_is_everything_after_closing_delimiter(self):
        _, body = parse_frontmatter(VALID)
        assert body == '\n\n# TestHolon Prober\n\n> *"Test all the things."*\n'

    def test_accepts_str_and_bytes(self):
        assert parse_frontmatter(VALID) == parse_frontmatter(VALID.encode())

    def test_no_frontmatter(self):
        with pytest.raises(MalformedRecordError, match="no YAML frontmatter"):
            parse_frontmatter(b"# Just markdown\nNo frontmatter here.")

    def test_unclosed_frontmatter(self):
        with pytest.raises(MalformedRecordError, match="unclosed"):
            parse_frontmatter(b'---\nuuid: "abc"\nstatus: draft\n')

    def test_invalid_yaml(self):
        with pytest.raises(MalformedRecordError, match="YAML parse error"):
            parse_frontmatter(b"---\nuuid: [unclosed\n---\n")

    def test_non_mapping_yaml(self):
        with pytest.raises(MalformedRecordError, match="expected a mapping"):
            parse_frontmatter(b"---\n- just\n- a list\n---\n")

    def test_wrong_shape_field(self):
        """A scalar where a sequence belongs fails the whole decode."""
        with pytest.raises(MalformedRecordError, match="parents"):
            parse_frontmatter(b'---\nuuid: "x"\nparents: "not-a-list"\n---\n')

    def test_mapping_where_string_expected(self):
        with pytest.raises(MalformedRecordError, match="given_name"):
            parse_frontmatter(b'---\nuuid: "x"\ngiven_name: {a: 1}\n---\n')

    def test_not_utf8(self):
        with pytest.raises(MalformedRecordError):
            parse_frontmatter(b"---\nuuid: \xff\xfe\n---\n")

    def test_empty_block_gives_empty_identity(self):
        identity, body = parse_frontmatter("---\n\n---\nbody")
        assert identity == Identity()
        assert body == "\nbody"

    def test_unquoted_scalars_kept_as_strings(self):
        """YAML would decode these as a date and an int."""
        identity, _ = parse_frontmatter("---\nuuid: abc\nborn: 2026-01-01\nlang: 3\n---\n")
        assert identity.born == "2026-01-01"
        assert identity.lang == "3"

    @pytest.mark.parametrize("field,raw", [
        ("uuid", "0123"),           # octal in YAML 1.1
        ("uuid", "1e3"),
        ("lang", "3.10"),           # float drops the trailing zero
        ("status", "on"),           # YAML 1.1 booleans
        ("status", "yes"),
        ("composer", "NO"),
        ("motto", "0x1f"),
        ("born", "2026-01-01 10:00:00"),
    ])
    def test_plain_scalars_keep_their_text(self, field: str, raw: str):
        identity, _ = parse_frontmatter(f"---\n{field}: {raw}\n---\n")
        assert getattr(identity, field) == raw

    def test_plain_scalars_in_sequences(self):
        identity, _ = parse_frontmatter("---\nparents: [0123, on, 3.10]\n---\n")
        assert identity.parents == ["0123", "on", "3.10"]

    @pytest.mark.parametrize("raw", ["", "~", "null", "Null"])
    def test_null_is_empty(self, raw: str):
        identity, _ = parse_frontmatter(f"---\nlang: {raw}\nparents: {raw}\n---\n")
        assert identity.lang == ""
        assert identity.parents == []

    def test_quoted_null_is_text(self):
        identity, _ = parse_frontmatter('---\nlang: "null"\n---\n')
        assert identity.lang == "null"

    def test_leading_zero_uuid_resolves_by_prefix(self, tmp_path: Path):
        from who.registry import find_by_uuid

        (tmp_path / "HOLON.md").write_text("---\nuuid: 0123-abcd\n---\n")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "HOLON.md").write_text("---\nuuid: 0123\n---\n")
        assert find_by_uuid(tmp_path / "sub", "0123") == tmp_path / "sub" / "HOLON.md"
        assert find_by_uuid(tmp_path, "0123-a") == tmp_path / "HOLON.md"

    def test_unknown_keys_ignored(self):
        identity, _ = parse_frontmatter('---\nuuid: "x"\nfavourite_colour: blue\n---\n')
        assert identity.uuid == "x"

    def test_missing_aliases_is_empty(self):
        identity, _ = parse_frontmatter('---\nuuid: "x"\n---\n')
        assert identity.aliases == []
        assert identity.parents == []


class TestRenderHolonMd:

    def test_layout(self):
        text = render_holon_md(_full_identity())
        assert text.startswith("---\n# Holon Identity v1\n")
        assert 'uuid: "3f2b8c1e-0000-4000-8000-000000000001"\n' in text
        assert 'status: "stable"\n' in text
        assert 'parents: ["parent-1", "parent-2"]\n' in text
        assert 'aliases: ["swifty"]\n' in text
        assert "\n# Lineage\n" in text
        assert "\n# Metadata\n" in text

    def test_body_template(self):
        text = render_holon_md(_full_identity())
        _, body = text.split("\n---\n", 1)
        assert "# Swift Transcriber" in body
        assert '> *"Hear it once."*' in body
        assert "## Description" in body
        assert "## Introspection Notes" in body

    def test_empty_sequences(self):
        text = render_holon_md(_full_identity(parents=[], aliases=[]))
        assert "parents: []\n" in text
        assert "aliases: []\n" in text


class TestRoundTrip:

    @pytest.mark.parametrize("identity", [
        _full_identity(),
        new_identity(),
        _full_identity(parents=[], aliases=[]),
        _full_identity(motto='He said "yes", then: no # really', composer="O'Brien \\ co"),
        _full_identity(given_name="Sophía", family_name="Who?", aliases=["ソフィア", "Σοφία"]),
        _full_identity(motto="line one\nline two\ttabbed"),
        _full_identity(motto="odd\x7f\x85 chars"),
        _full_identity(given_name="yes", family_name="null", lang="3.12"),
        _full_identity(status="yes"),
        _full_identity(status="0x1", proto_status="~"),
        _full_identity(status="", uuid="0123"),
    ])
    def test_parse_render_round_trip(self, identity: Identity):
        parsed, _ = parse_frontmatter(render_holon_md(identity))
        assert parsed == identity


class TestWriteHolonMd:

    def test_writes_file(self, tmp_path: Path):
        path = tmp_path / "HOLON.md"
        identity = _full_identity()
        write_holon_md(identity, path)
        parsed, _ = parse_frontmatter(path.read_bytes())
        assert parsed == identity

    def test_missing_directory_raises_oserror(self, tmp_path: Path):
        with pytest.raises(OSError):
            write_holon_md(_full_identity(), tmp_path / "missing" / "HOLON.md")
