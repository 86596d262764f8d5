"""
HOLON.md discovery and UUID resolution.

Both operations walk a directory tree depth-first, visiting the entries of
each directory in lexical order, so results and prefix tie-breaks are
reproducible across runs and platforms.

- scan_all_with_paths(): bulk discovery, skips hidden directories, streams
  each holon and progress snapshots to callbacks
- find_by_uuid(): targeted lookup, descends everywhere, stops at the first
  UUID that equals or starts with the target

A bad file never aborts a walk. It is handed to the skip policy
(``on_skip(path, reason)``), which logs at DEBUG unless the caller supplies
its own. Only a root that cannot be listed is fatal.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from .errors import HolonNotFoundError, MalformedRecordError
from .frontmatter import parse_frontmatter
from .types import HOLON_FILENAME, Identity, LocatedIdentity, ScanProgress

logger = logging.getLogger(__name__)

# Dot-directory that is walked despite looking hidden (holds ~/.holon/cache)
HOLON_DIR_NAME = ".holon"

PathLike = Union[str, os.PathLike]
SkipHandler = Callable[[Path, str], None]


def log_skip(path: Path, reason: str) -> None:
    """Default skip policy: note the file and keep going."""
    logger.debug("Skipping %s: %s", path, reason)


def _is_hidden_dir(name: str) -> bool:
    return name.startswith(".") and name not in (".", HOLON_DIR_NAME)


def _list_dir(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def _walk_files(root: Path, skip_hidden: bool, on_skip: SkipHandler) -> Iterator[Path]:
    """Yield every non-directory entry under root, lexical depth-first.

    Raises:
        OSError: If root itself cannot be listed
    """
    yield from _walk_entries(_list_dir(root), skip_hidden, on_skip)


def _walk_entries(entries: list[os.DirEntry], skip_hidden: bool,
                  on_skip: SkipHandler) -> Iterator[Path]:
    for entry in entries:
        path = Path(entry.path)
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            on_skip(path, f"cannot stat: {e}")
            continue

        if not is_dir:
            yield path
            continue

        if skip_hidden and _is_hidden_dir(entry.name):
            continue
        try:
            children = _list_dir(path)
        except OSError as e:
            on_skip(path, f"cannot list directory: {e}")
            continue
        yield from _walk_entries(children, skip_hidden, on_skip)


def _load(path: Path, on_skip: SkipHandler) -> Optional[LocatedIdentity]:
    """Read and parse one HOLON.md, or report why it was skipped."""
    try:
        data = path.read_bytes()
    except OSError as e:
        on_skip(path, f"read failed: {e}")
        return None
    try:
        identity, _ = parse_frontmatter(data)
    except MalformedRecordError as e:
        on_skip(path, str(e))
        return None
    return LocatedIdentity(identity=identity, path=path)


def scan_all_with_paths(
    root: PathLike,
    progress_every: int = 0,
    on_found: Optional[Callable[[LocatedIdentity], None]] = None,
    on_progress: Optional[Callable[[ScanProgress], None]] = None,
    on_skip: Optional[SkipHandler] = None,
) -> None:
    """
    Scan the directory tree from root for HOLON.md files.

    Each parsed holon is emitted through on_found as soon as it is
    discovered. on_progress is called each time the scanned-file count
    reaches a multiple of progress_every, and once more at the end
    (progress_every <= 0 means only the final report).

    Directories whose name starts with '.' are not descended, except
    '.holon'. Every non-directory entry counts as scanned.

    Raises:
        OSError: If root does not exist or cannot be listed. Nothing is
            emitted in that case.
    """
    root = Path(root)
    on_skip = on_skip or log_skip
    progress_every = max(progress_every, 0)

    scanned = 0
    found = 0

    def report(force: bool = False) -> None:
        if on_progress is None:
            return
        if force or (progress_every > 0 and scanned > 0 and scanned % progress_every == 0):
            on_progress(ScanProgress(scanned_files=scanned, holons_found=found))

    for path in _walk_files(root, skip_hidden=True, on_skip=on_skip):
        scanned += 1
        report()

        if path.name != HOLON_FILENAME:
            continue

        located = _load(path, on_skip)
        if located is None:
            continue

        found += 1
        if on_found is not None:
            on_found(located)

    logger.debug("Scanned %s: %d files, %d holons", root, scanned, found)
    report(force=True)


def find_all_with_paths(root: PathLike) -> list[LocatedIdentity]:
    """Scan root for HOLON.md files and return identities with their paths."""
    holons: list[LocatedIdentity] = []
    scan_all_with_paths(root, 0, holons.append)
    return holons


def find_all(root: PathLike) -> list[Identity]:
    """Scan root for HOLON.md files and return the parsed identities."""
    return [h.identity for h in find_all_with_paths(root)]


def find_by_uuid(root: PathLike, target: str, on_skip: Optional[SkipHandler] = None) -> Path:
    """
    Locate a HOLON.md file by full UUID or prefix.

    Unlike scan_all_with_paths(), hidden directories are searched too.
    When several UUIDs share the prefix, the first file in lexical
    depth-first order wins.

    Raises:
        HolonNotFoundError: If no identity matches
        OSError: If root does not exist or cannot be listed
    """
    on_skip = on_skip or log_skip
    for path in _walk_files(Path(root), skip_hidden=False, on_skip=on_skip):
        if path.name != HOLON_FILENAME:
            continue
        located = _load(path, on_skip)
        if located is None:
            continue
        uuid = located.identity.uuid
        if uuid == target or uuid.startswith(target):
            return path
    raise HolonNotFoundError(target)
