"""
Error types and error logging for who.

Single-record operations (show, create, parse) raise these directly.
Bulk scans never raise them for individual files; they go to the scan's
skip policy instead.

log_exception() keeps full stack traces for debugging while the CLI
shows a clean one-line message.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class WhoError(Exception):
    """Base class for holon identity errors."""


class MalformedRecordError(WhoError, ValueError):
    """A HOLON.md file has no frontmatter, an unclosed block, or bad YAML."""


class HolonNotFoundError(WhoError, LookupError):
    """No HOLON.md matches the requested UUID or prefix."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"holon not found: {target}")


class InvalidArgumentError(WhoError, ValueError):
    """A required field is missing or a choice is not recognised."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting WHO_HOME."""
    home = os.environ.get("WHO_HOME")
    if home:
        return Path(home) / "who-errors.log"
    return Path.home() / ".holon" / "who-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # Error log is best-effort
    return log_path
