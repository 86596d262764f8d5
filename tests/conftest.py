"""
Shared pytest fixtures for who tests.

Every test gets a private holon home ($WHO_HOME) and cache
($WHO_CACHE_DIR), so nothing reads or writes the real ~/.holon.
"""

from pathlib import Path
from typing import Optional

import pytest

from who.config import WhoConfig

HOLON_TEMPLATE = """---
uuid: "{uuid}"
given_name: "{given_name}"
family_name: "{family_name}"
motto: "Testing."
composer: "Test"
clade: "deterministic/pure"
status: draft
born: "2026-01-01"
parents: []
reproduction: "manual"
generated_by: "test"
lang: "python"
proto_status: draft
---
# {given_name}
"""


def write_holon(
    directory: Path,
    uuid: str,
    given_name: str = "Test",
    family_name: str = "Holon",
    content: Optional[str] = None,
) -> Path:
    """Write a HOLON.md into directory (created if needed) and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "HOLON.md"
    if content is None:
        content = HOLON_TEMPLATE.format(uuid=uuid, given_name=given_name, family_name=family_name)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def who_home(tmp_path_factory, monkeypatch) -> Path:
    """Isolate config, cache and error log from the real home directory."""
    home = tmp_path_factory.mktemp("who-home")
    monkeypatch.setenv("WHO_HOME", str(home))
    monkeypatch.setenv("WHO_CACHE_DIR", str(home / "cache"))
    monkeypatch.delenv("WHO_ROOT", raising=False)
    monkeypatch.delenv("WHO_VERBOSE", raising=False)
    return home


@pytest.fixture
def cache_dir(who_home: Path) -> Path:
    """The (initially empty) global holon cache for this test."""
    path = who_home / "cache"
    path.mkdir()
    return path


@pytest.fixture
def seed_holon():
    """
    Factory for HOLON.md files.

    Usage:
        def test_something(seed_holon, tmp_path):
            seed_holon(tmp_path / "alpha", "aaaa-1111", "Alpha")
    """
    return write_holon


@pytest.fixture
def config(who_home: Path, cache_dir: Path) -> WhoConfig:
    """Default configuration pointing at the test cache."""
    return WhoConfig(path=who_home, cache_dir=cache_dir)


@pytest.fixture
def holon_tree(tmp_path: Path) -> Path:
    """
    A project tree with a mix of visible, hidden and broken holons.

        holon-a/HOLON.md        aaaa-1111  Alpha
        holon-b/HOLON.md        bbbb-2222  Beta
        holon-b/README.md       (not a holon)
        .secret/HOLON.md        hidden-uuid  Hidden   (skipped by scans)
        .holon/gamma/HOLON.md   cccc-3333  Gamma      (cache convention, scanned)
        broken/HOLON.md         (invalid YAML)
    """
    write_holon(tmp_path / "holon-a", "aaaa-1111", "Alpha")
    write_holon(tmp_path / "holon-b", "bbbb-2222", "Beta")
    (tmp_path / "holon-b" / "README.md").write_text("# Beta\n")
    write_holon(tmp_path / ".secret", "hidden-uuid", "Hidden")
    write_holon(tmp_path / ".holon" / "gamma", "cccc-3333", "Gamma")
    write_holon(tmp_path / "broken", "", content="---\nuuid: [unclosed\n---\n")
    return tmp_path
