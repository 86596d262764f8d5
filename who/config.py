"""
Configuration for who.

The configuration is an optional TOML file, ``who.toml``, in the holon home
directory (``$WHO_HOME``, default ``~/.holon``). Every setting has a
default, so the file only needs the keys a user wants to change.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomli_w

from .types import GENERATED_BY

CONFIG_FILENAME = "who.toml"
CONFIG_VERSION = 1

# Files scanned between two progress reports in `who list`
DEFAULT_PROGRESS_EVERY = 500

DEFAULT_LANG = "python"


def get_config_dir() -> Path:
    """Holon home directory: $WHO_HOME or ~/.holon."""
    env = os.environ.get("WHO_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".holon"


def default_cache_dir() -> Optional[Path]:
    """
    Global holon cache directory.

    $WHO_CACHE_DIR, else ~/.holon/cache. Returns None if the home
    directory cannot be determined.
    """
    env = os.environ.get("WHO_CACHE_DIR")
    if env:
        return Path(env).expanduser()
    try:
        return Path.home() / ".holon" / "cache"
    except RuntimeError:
        return None


@dataclass
class WhoConfig:
    """Complete who configuration."""
    path: Path
    version: int = CONFIG_VERSION

    # Scanning
    progress_every: int = DEFAULT_PROGRESS_EVERY
    cache_dir: Optional[Path] = field(default_factory=default_cache_dir)

    # New identities
    generated_by: str = GENERATED_BY
    default_lang: str = DEFAULT_LANG

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def load_config(config_dir: Path) -> WhoConfig:
    """
    Load configuration from a config directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = config_dir / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config {config_path}: {e}") from e

    version = data.get("who", {}).get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    scan = data.get("scan", {})
    identity = data.get("identity", {})

    progress_every = scan.get("progress_every", DEFAULT_PROGRESS_EVERY)
    if not isinstance(progress_every, int) or isinstance(progress_every, bool):
        raise ValueError(f"scan.progress_every must be an integer, got {progress_every!r}")

    # The environment wins over the file for the cache location
    cache_dir = default_cache_dir()
    if "cache_dir" in scan and not os.environ.get("WHO_CACHE_DIR"):
        cache_dir = Path(scan["cache_dir"]).expanduser()

    return WhoConfig(
        path=config_dir,
        version=version,
        progress_every=progress_every,
        cache_dir=cache_dir,
        generated_by=identity.get("generated_by", GENERATED_BY),
        default_lang=identity.get("default_lang", DEFAULT_LANG),
    )


def save_config(config: WhoConfig) -> None:
    """
    Save configuration to the config directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    scan: dict = {"progress_every": config.progress_every}
    if config.cache_dir is not None:
        scan["cache_dir"] = str(config.cache_dir)

    data = {
        "who": {
            "version": config.version,
        },
        "scan": scan,
        "identity": {
            "generated_by": config.generated_by,
            "default_lang": config.default_lang,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_default_config(config_dir: Optional[Path] = None) -> WhoConfig:
    """
    Load the config file if there is one, otherwise return defaults.

    This is the main entry point for config management. Nothing is written.
    """
    config_dir = config_dir or get_config_dir()
    if (config_dir / CONFIG_FILENAME).exists():
        return load_config(config_dir)
    return WhoConfig(path=config_dir)
