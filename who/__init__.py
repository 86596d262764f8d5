"""
Sophia Who? Holon identity manager.

A holon's identity is its HOLON.md frontmatter: UUID, names, clade and
lineage. This package creates those files, finds them on disk, and serves
them to agents over MCP.

Quick Start:
    from who import Registrar

    reg = Registrar("path/to/project")
    identity, path = reg.create_identity("Deep", "Prober", "Look closer.", "B. ALTER")
    entries = reg.list_all()

CLI Usage:
    who new
    who show <uuid-or-prefix>
    who list [root]
    who serve --listen stdio://
"""

from importlib.metadata import PackageNotFoundError, version

from .api import Registrar
from .errors import HolonNotFoundError, InvalidArgumentError, MalformedRecordError, WhoError
from .types import HolonEntry, Identity, LocatedIdentity, ScanProgress, new_identity

try:
    __version__ = version("sophia-who")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "Registrar",
    "Identity",
    "LocatedIdentity",
    "ScanProgress",
    "HolonEntry",
    "new_identity",
    "WhoError",
    "MalformedRecordError",
    "HolonNotFoundError",
    "InvalidArgumentError",
]
