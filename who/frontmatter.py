"""
HOLON.md reading and writing.

A HOLON.md file is a YAML frontmatter block delimited by ``---`` lines,
followed by free-form Markdown. parse_frontmatter() is strict about the
delimiters and the YAML: a file that fails any check yields no record at
all. render_holon_md() emits a fixed layout that parses back to the same
Identity.
"""

import json
import re
from pathlib import Path
from typing import Union

import yaml

from .errors import MalformedRecordError
from .types import Identity

DELIMITER = "---"

_NULL_TAG = "tag:yaml.org,2002:null"


class _TextLoader(yaml.SafeLoader):
    """SafeLoader that leaves plain scalars as written.

    Only null (empty, ``~``, ``null``) is still resolved, so ``0123``,
    ``3.10``, ``on`` and ``2026-01-01`` all load as the text in the file.
    """


_TextLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag == _NULL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_frontmatter(data: Union[bytes, str]) -> tuple[Identity, str]:
    """
    Extract the identity and the remaining Markdown body from HOLON.md content.

    Returns:
        (identity, body) tuple. The body is everything after the closing
        delimiter, verbatim.

    Raises:
        MalformedRecordError: If the block is missing, unclosed, or not a
            YAML mapping of identity fields
    """
    if isinstance(data, bytes):
        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"not UTF-8 text: {e}") from e
    else:
        content = data

    if not content.startswith(DELIMITER):
        raise MalformedRecordError("no YAML frontmatter found")

    rest = content[len(DELIMITER):]
    if rest.startswith("\n"):
        rest = rest[1:]

    end = rest.find("\n" + DELIMITER)
    if end < 0:
        raise MalformedRecordError("unclosed YAML frontmatter")

    block = rest[:end]
    body = rest[end + len(DELIMITER) + 1:]

    try:
        meta = yaml.load(block, Loader=_TextLoader)
    except yaml.YAMLError as e:
        raise MalformedRecordError(f"YAML parse error: {e}") from e

    if meta is None:
        return Identity(), body
    if not isinstance(meta, dict):
        raise MalformedRecordError(
            f"YAML parse error: expected a mapping, got {type(meta).__name__}"
        )
    return Identity.from_dict(meta), body


# Characters PyYAML rejects or folds as line breaks, even inside double quotes
_NON_PRINTABLE = re.compile(
    "[^\x09\x0A\x0D\x20-\x7E\xA0-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
    "|[\u2028\u2029]"
)


def _quote(value: str) -> str:
    """Double-quote a string as a YAML scalar."""
    quoted = json.dumps(value, ensure_ascii=False)
    return _NON_PRINTABLE.sub(lambda m: f"\\u{ord(m.group()):04x}", quoted)


def _join_quoted(values: list[str]) -> str:
    return ", ".join(_quote(v) for v in values)


def render_holon_md(identity: Identity) -> str:
    """Render the complete HOLON.md file content for an identity."""
    i = identity
    return f"""---
# Holon Identity v1
uuid: {_quote(i.uuid)}
given_name: {_quote(i.given_name)}
family_name: {_quote(i.family_name)}
motto: {_quote(i.motto)}
composer: {_quote(i.composer)}
clade: {_quote(i.clade)}
status: {_quote(i.status)}
born: {_quote(i.born)}

# Lineage
parents: [{_join_quoted(i.parents)}]
reproduction: {_quote(i.reproduction)}

# Optional
aliases: [{_join_quoted(i.aliases)}]

# Metadata
generated_by: {_quote(i.generated_by)}
lang: {_quote(i.lang)}
proto_status: {_quote(i.proto_status)}
---

# {i.given_name} {i.family_name}

> *"{i.motto}"*

## Description

<Describe what this holon does.>

## Introspection Notes

<Any assumptions or ambiguities noted during creation.>
"""


def write_holon_md(identity: Identity, path: Path) -> None:
    """
    Write an identity to a HOLON.md file. Not atomic.

    Raises:
        OSError: If the file cannot be created or written
    """
    Path(path).write_text(render_holon_md(identity), encoding="utf-8")
