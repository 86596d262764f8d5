"""
Core API for holon identity.

Registrar is the one entry point used by both the CLI and the MCP server:
- create_identity(): validate → new identity → write HOLON.md
- show_identity(): resolve UUID or prefix → parse → raw text
- list_identities(): one root, every holon labelled "local"
- list_all(): project holons plus the global cache, de-duplicated

Every operation works relative to an explicit root directory rather than
the process working directory.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from .config import WhoConfig, load_or_default_config
from .errors import InvalidArgumentError
from .frontmatter import parse_frontmatter, write_holon_md
from .listing import relative_holon_dir, scan_holons
from .registry import HOLON_DIR_NAME, PathLike, find_all_with_paths, find_by_uuid
from .types import (
    CLADES,
    HOLON_FILENAME,
    ORIGIN_LOCAL,
    REPRODUCTION_MODES,
    HolonEntry,
    Identity,
    ScanProgress,
    holon_dir_name,
    new_identity,
    normalize_choice,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("given_name", "family_name", "motto", "composer")


class Registrar:
    """
    Creates, resolves and lists holon identities under a root directory.

    Args:
        root: Directory that relative paths and lookups are based on
        config: Settings; loaded from $WHO_HOME/who.toml (or defaults) if omitted
    """

    def __init__(self, root: PathLike = ".", config: Optional[WhoConfig] = None):
        self.root = Path(root)
        self.config = config if config is not None else load_or_default_config()

    def _resolve(self, path: PathLike) -> Path:
        p = Path(path).expanduser()
        return p if p.is_absolute() else self.root / p

    def default_output_dir(self, given_name: str, family_name: str) -> Path:
        """Where a new holon lands when no output dir is given."""
        return self.root / HOLON_DIR_NAME / holon_dir_name(given_name, family_name)

    def create_identity(
        self,
        given_name: str,
        family_name: str,
        motto: str,
        composer: str,
        *,
        clade: Optional[str] = None,
        reproduction: Optional[str] = None,
        lang: Optional[str] = None,
        aliases: Optional[list[str]] = None,
        output_dir: Optional[PathLike] = None,
    ) -> tuple[Identity, Path]:
        """
        Create a new holon identity and write its HOLON.md.

        Clade defaults to deterministic/pure and reproduction to manual.
        A relative output_dir is taken relative to the registrar root.

        Returns:
            (identity, path of the written HOLON.md)

        Raises:
            InvalidArgumentError: If a required field is blank or a choice
                is not recognised
            OSError: If the directory or file cannot be written
        """
        values = {
            "given_name": given_name,
            "family_name": family_name,
            "motto": motto,
            "composer": composer,
        }
        for name in REQUIRED_FIELDS:
            if not values[name] or not values[name].strip():
                raise InvalidArgumentError(f"{name} is required")

        identity = new_identity(self.config.generated_by)
        identity.given_name = given_name
        identity.family_name = family_name
        identity.motto = motto
        identity.composer = composer
        identity.clade = normalize_choice(clade, CLADES, CLADES[0], "clade")
        identity.reproduction = normalize_choice(
            reproduction, REPRODUCTION_MODES, REPRODUCTION_MODES[0], "reproduction",
        )
        if lang:
            identity.lang = lang
        if aliases:
            identity.aliases = [a.strip() for a in aliases if a and a.strip()]

        if output_dir and str(output_dir).strip():
            out = self._resolve(output_dir)
        else:
            out = self.default_output_dir(given_name, family_name)

        out.mkdir(parents=True, exist_ok=True)
        path = out / HOLON_FILENAME
        write_holon_md(identity, path)

        logger.info("Created holon %s (%s) at %s", identity.uuid, identity.display_name, path)
        return identity, path

    def show_identity(self, uuid: str) -> tuple[Identity, Path, str]:
        """
        Retrieve a holon's identity by full UUID or prefix.

        Returns:
            (identity, path, raw file content)

        Raises:
            InvalidArgumentError: If uuid is blank
            HolonNotFoundError: If nothing matches
            MalformedRecordError: If the file changed under us and no longer parses
            OSError: If the file cannot be read
        """
        if not uuid or not uuid.strip():
            raise InvalidArgumentError("uuid is required")

        path = find_by_uuid(self.root, uuid)
        data = path.read_bytes()
        identity, _ = parse_frontmatter(data)
        return identity, path, data.decode("utf-8", errors="replace")

    def list_identities(self, root_dir: Optional[PathLike] = None) -> list[HolonEntry]:
        """
        List every holon under one directory, labelled "local".

        This is the RPC listing: it neither looks in ``holons/`` separately
        nor in the cache. See list_all() for the aggregated view.

        Raises:
            OSError: If the directory cannot be scanned
        """
        root = self._resolve(root_dir) if root_dir and str(root_dir).strip() else self.root
        return [
            HolonEntry(
                identity=h.identity,
                origin=ORIGIN_LOCAL,
                relative_path=relative_holon_dir(root, h.path),
            )
            for h in find_all_with_paths(root)
        ]

    def list_all(
        self,
        root_dir: Optional[PathLike] = None,
        on_entry: Optional[Callable[[HolonEntry], None]] = None,
        on_progress: Optional[Callable[[str, ScanProgress], None]] = None,
    ) -> list[HolonEntry]:
        """
        List project holons and cached holons, streaming as they are found.

        Never raises for a missing or unreadable root; returns what it found.
        """
        root = self._resolve(root_dir) if root_dir and str(root_dir).strip() else self.root
        entries: list[HolonEntry] = []

        def collect(entry: HolonEntry) -> None:
            entries.append(entry)
            if on_entry is not None:
                on_entry(entry)

        scan_holons(
            root,
            cache_dir=self.config.cache_dir,
            progress_every=self.config.progress_every,
            on_entry=collect,
            on_progress=on_progress,
        )
        return entries
