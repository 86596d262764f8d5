"""
Holon listing across the project tree and the global cache.

Three roots are scanned in order:

1. ``<root>/holons``: the project's own holons (origin "local")
2. ``<root>``: a standalone project's HOLON.md (origin "local")
3. the cache dir: holons fetched as dependencies (origin "cached")

The two local scans share one de-duplication set, so a holon under
``<root>/holons`` is not listed again when ``<root>`` is walked. The cache
is never de-duplicated against them: a holon that is both owned and cached
shows up under both labels.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from .registry import PathLike, SkipHandler, scan_all_with_paths
from .types import ORIGIN_CACHED, ORIGIN_LOCAL, HolonEntry, LocatedIdentity, ScanProgress

logger = logging.getLogger(__name__)

# Conventional subdirectory for a project's own holons
LOCAL_HOLONS_DIR = "holons"


def relative_holon_dir(root: PathLike, holon_path: PathLike) -> str:
    """Directory of a HOLON.md relative to root (absolute if that fails)."""
    directory = os.path.dirname(holon_path)
    try:
        return os.path.normpath(os.path.relpath(directory, root))
    except ValueError:
        # Different drives on Windows
        return os.path.normpath(directory)


def scan_holons(
    root: PathLike,
    cache_dir: Optional[PathLike] = None,
    progress_every: int = 0,
    on_entry: Optional[Callable[[HolonEntry], None]] = None,
    on_progress: Optional[Callable[[str, ScanProgress], None]] = None,
    on_skip: Optional[SkipHandler] = None,
) -> int:
    """
    Scan local holons and the cache, streaming entries as they are found.

    on_progress receives the scan label ("local", "root" or "cache") with
    each snapshot. A root that does not exist is skipped; a root that
    cannot be scanned is logged and skipped.

    Returns:
        Number of entries emitted
    """
    root = Path(root)
    emitted = 0

    def scan_root(scan_path: Path, label: str, origin: str, seen: Optional[set[str]]) -> None:
        if not scan_path.is_dir():
            logger.debug("No %s holons: %s is not a directory", label, scan_path)
            return

        def found(h: LocatedIdentity) -> None:
            nonlocal emitted
            key = h.identity.uuid or str(h.path)
            if seen is not None:
                if key in seen:
                    return
                seen.add(key)
            emitted += 1
            if on_entry is not None:
                on_entry(HolonEntry(
                    identity=h.identity,
                    origin=origin,
                    relative_path=relative_holon_dir(root, h.path),
                ))

        def progress(p: ScanProgress) -> None:
            if on_progress is not None:
                on_progress(label, p)

        try:
            scan_all_with_paths(scan_path, progress_every, found, progress, on_skip)
        except OSError as e:
            logger.warning("Cannot scan %s holons at %s: %s", label, scan_path, e)

    local_seen: set[str] = set()
    scan_root(root / LOCAL_HOLONS_DIR, "local", ORIGIN_LOCAL, local_seen)
    scan_root(root, "root", ORIGIN_LOCAL, local_seen)
    if cache_dir is not None:
        scan_root(Path(cache_dir), "cache", ORIGIN_CACHED, None)

    return emitted


def list_holons(
    root: PathLike,
    cache_dir: Optional[PathLike] = None,
    on_skip: Optional[SkipHandler] = None,
) -> list[HolonEntry]:
    """Collect scan_holons() results into a list. May be empty."""
    entries: list[HolonEntry] = []
    scan_holons(root, cache_dir, 0, entries.append, None, on_skip)
    return entries
