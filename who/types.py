"""
Data types for holon identity.

Identity mirrors the HOLON.md YAML frontmatter field for field, in file
order.
"""

import re
import uuid
from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional

from .errors import InvalidArgumentError, MalformedRecordError

# Name of the file that carries a holon's identity
HOLON_FILENAME = "HOLON.md"

GENERATED_BY = "sophia-who"

# Computational nature classifications
CLADES = (
    "deterministic/pure",
    "deterministic/stateful",
    "deterministic/io_bound",
    "probabilistic/generative",
    "probabilistic/perceptual",
    "probabilistic/adaptive",
)

# Lifecycle stages
STATUSES = ("draft", "stable", "deprecated", "dead")

# How a holon can be created
REPRODUCTION_MODES = ("manual", "assisted", "automatic", "autopoietic", "bred")

ORIGIN_LOCAL = "local"
ORIGIN_CACHED = "cached"


@dataclass
class Identity:
    """
    A holon's civil status.

    The uuid is assigned once by new_identity() and never changes.
    """
    # Required
    uuid: str = ""
    given_name: str = ""
    family_name: str = ""
    motto: str = ""
    composer: str = ""
    clade: str = ""
    status: str = ""
    born: str = ""

    # Lineage
    parents: list[str] = field(default_factory=list)
    reproduction: str = ""

    # Optional
    aliases: list[str] = field(default_factory=list)

    # Metadata
    generated_by: str = ""
    lang: str = ""
    proto_status: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.given_name} {self.family_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        """Plain dict in frontmatter field order, for JSON output."""
        return {
            f.name: list(getattr(self, f.name)) if f.name in _LIST_FIELDS else getattr(self, f.name)
            for f in fields(self)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Identity":
        """
        Build an Identity from a parsed frontmatter mapping.

        Unknown keys are ignored. Non-string scalars are converted with
        str(); parse_frontmatter() already hands plain scalars over as text.

        Raises:
            MalformedRecordError: If a field has the wrong shape
        """
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name in _LIST_FIELDS:
                kwargs[f.name] = _coerce_list(f.name, value)
            else:
                kwargs[f.name] = _coerce_str(f.name, value)
        return cls(**kwargs)


_LIST_FIELDS = frozenset({"parents", "aliases"})


def _coerce_str(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise MalformedRecordError(f"{name}: expected a string, got {type(value).__name__}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _coerce_list(name: str, value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedRecordError(f"{name}: expected a sequence, got {type(value).__name__}")
    return [_coerce_str(name, v) for v in value]


@dataclass
class LocatedIdentity:
    """An Identity paired with the HOLON.md path it was read from."""
    identity: Identity
    path: Path


@dataclass(frozen=True)
class ScanProgress:
    """Progress snapshot for HOLON.md discovery."""
    scanned_files: int
    holons_found: int


@dataclass
class HolonEntry:
    """
    One row of a holon listing.

    Attributes:
        identity: The parsed identity
        origin: "local" for the caller's own tree, "cached" for the global cache
        relative_path: Holon directory relative to the requested root
    """
    identity: Identity
    origin: str
    relative_path: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity.to_dict(),
            "origin": self.origin,
            "relative_path": self.relative_path,
        }


def new_identity(generated_by: str = GENERATED_BY) -> Identity:
    """Create a fresh identity with a generated UUID and today's date."""
    return Identity(
        uuid=str(uuid.uuid4()),
        status="draft",
        born=date.today().isoformat(),
        parents=[],
        generated_by=generated_by,
        proto_status="draft",
    )


def holon_dir_name(given_name: str, family_name: str) -> str:
    """Default directory name for a new holon: ``swift-transcriber``.

    A trailing '?' on the family name is dropped ("Who?" -> "who").
    """
    name = f"{given_name}-{family_name.removesuffix('?')}".lower()
    return name.replace(" ", "-")


_CHOICE_SEPARATORS = re.compile(r"[-_/\s]+")


def _choice_key(value: str) -> str:
    return _CHOICE_SEPARATORS.sub("_", value.strip().lower())


def normalize_choice(
    value: Optional[str],
    choices: Iterable[str],
    default: str,
    field_name: str,
) -> str:
    """Map user or RPC input onto one of a fixed set of values.

    Accepts the canonical value (``deterministic/pure``), an enum-style name
    (``DETERMINISTIC_PURE``), or a 1-based menu index (``"1"``).
    Empty input returns *default*.

    Raises:
        InvalidArgumentError: If the value matches nothing
    """
    if value is None or not value.strip():
        return default
    choices = tuple(choices)
    answer = value.strip()
    if answer.isdecimal():
        index = int(answer)
        if 1 <= index <= len(choices):
            return choices[index - 1]
    key = _choice_key(answer)
    for choice in choices:
        if _choice_key(choice) == key:
            return choice
    raise InvalidArgumentError(
        f"invalid {field_name}: {value!r} (expected one of: {', '.join(choices)})"
    )
