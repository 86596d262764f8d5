"""
Logging configuration for who.

Quiet by default: scans log every skipped file at DEBUG, which is only
useful when chasing a missing holon.
"""

import logging
import sys
import warnings


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to suppress verbose output.

    Args:
        quiet: If True, only warnings and errors from who are shown.
            If False, who logs at INFO.
    """
    if quiet:
        # Suppress Python warnings (including deprecation warnings)
        warnings.filterwarnings("ignore")
        logging.getLogger("who").setLevel(logging.WARNING)
        # FastMCP logs every request at INFO
        logging.getLogger("mcp").setLevel(logging.WARNING)
    else:
        logging.getLogger("who").setLevel(logging.INFO)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    # Re-enable warnings
    warnings.filterwarnings("default")

    # Configure root logger for debug output
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    for name in ("who", "mcp"):
        logging.getLogger(name).setLevel(logging.DEBUG)
