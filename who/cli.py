"""
CLI interface for Sophia Who?, the holon identity manager.

Usage:
    who new                         create a new holon identity
    who show <uuid>                 display a holon's identity
    who list [root]                 list all known holons in root
    who serve [--listen stdio://]   start the MCP server
"""

import json
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import Registrar
from .config import get_config_dir, load_or_default_config, save_config
from .errors import InvalidArgumentError, WhoError
from .logging_config import configure_quiet_mode, enable_debug_mode
from .registry import HOLON_DIR_NAME
from .types import CLADES, REPRODUCTION_MODES, HolonEntry, ScanProgress, holon_dir_name, normalize_choice

# Configure quiet mode by default
# Set WHO_VERBOSE=1 to enable debug mode via environment
if os.environ.get("WHO_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from . import __version__
        print(f"who {__version__}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_root_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _root_callback(value: Optional[Path]):
    global _root_override
    _root_override = value


def _get_root() -> Path:
    return _root_override if _root_override is not None else Path(".")


app = typer.Typer(
    name="who",
    help="Sophia Who? Holon identity manager.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    root: Annotated[Optional[Path], typer.Option(
        "--root", "-r",
        envvar="WHO_ROOT",
        help="Project root for lookups and new holons (default: current directory)",
        callback=_root_callback,
        is_eager=True,
    )] = None,
):
    """Sophia Who? Holon identity manager."""


def _get_registrar() -> Registrar:
    """Build a Registrar, turning config problems into a clean exit."""
    try:
        return Registrar(_get_root(), load_or_default_config())
    except (ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


# -----------------------------------------------------------------------------
# Prompts
# -----------------------------------------------------------------------------

def _ask(prompt: str) -> str:
    """Ask until a non-empty answer is given."""
    while True:
        answer = typer.prompt(prompt, default="", show_default=False).strip()
        if answer:
            return answer
        typer.echo("  (required)")


def _ask_default(prompt: str, default: str) -> str:
    if default:
        return typer.prompt(prompt, default=default).strip() or default
    return typer.prompt(prompt, default="", show_default=False).strip()


def _ask_choice(prompt: str, choices: tuple[str, ...]) -> str:
    """Ask for a menu entry by number or by name."""
    while True:
        answer = typer.prompt(f"{prompt} (1-{len(choices)})", default="", show_default=False)
        try:
            choice = normalize_choice(answer, choices, "", prompt)
        except InvalidArgumentError:
            choice = ""
        if choice:
            return choice
        typer.echo("  (invalid choice)")


def _print_menu(title: str, choices: tuple[str, ...]) -> None:
    typer.echo(f"\n{title}:")
    for i, c in enumerate(choices, 1):
        typer.echo(f"  {i}. {c}")


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def new(
    family_name: Annotated[Optional[str], typer.Option(
        "--family-name", help="The function (e.g. Transcriber, Prober)")] = None,
    given_name: Annotated[Optional[str], typer.Option(
        "--given-name", help="The character (e.g. Swift, Deep)")] = None,
    composer: Annotated[Optional[str], typer.Option(
        "--composer", help="Who is making this decision")] = None,
    motto: Annotated[Optional[str], typer.Option(
        "--motto", help="The dessein in one sentence")] = None,
    clade: Annotated[Optional[str], typer.Option(
        "--clade", help="Computational nature (name or menu number)")] = None,
    reproduction: Annotated[Optional[str], typer.Option(
        "--reproduction", help="Reproduction mode (name or menu number)")] = None,
    lang: Annotated[Optional[str], typer.Option(
        "--lang", help="Implementation language")] = None,
    aliases: Annotated[Optional[str], typer.Option(
        "--aliases", help="Comma-separated aliases")] = None,
    output_dir: Annotated[Optional[str], typer.Option(
        "--output-dir", "-o", help="Directory for HOLON.md (default: .holon/<given>-<family>)")] = None,
):
    """
    Create a new holon identity.

    Prompts for every field not given as an option. With --json nothing is
    prompted: the four names are required as options and the rest default.

    \b
    Examples:
        who new
        who new --given-name Swift --family-name Transcriber \\
                --composer "B. ALTER" --motto "Hear it once." --clade 4
    """
    reg = _get_registrar()

    if _get_json_output():
        required = {
            "--family-name": family_name,
            "--given-name": given_name,
            "--composer": composer,
            "--motto": motto,
        }
        missing = [flag for flag, value in required.items() if not value]
        if missing:
            typer.echo(f"Error: --json needs {', '.join(missing)} (no prompts in JSON mode)", err=True)
            raise typer.Exit(1)
        clade = clade or CLADES[0]
        reproduction = reproduction or REPRODUCTION_MODES[0]
        lang = reg.config.default_lang if lang is None else lang
        aliases = aliases or ""
    else:
        typer.echo("─── Sophia Who? — New Holon Identity ───\n")

    family_name = family_name or _ask("Family name (the function, e.g. Transcriber, Prober)")
    given_name = given_name or _ask("Given name (the character, e.g. Swift, Deep)")
    composer = composer or _ask("Composer (who is making this decision?)")
    motto = motto or _ask("Motto (the dessein in one sentence)")

    if clade is None:
        _print_menu("Clade (computational nature)", CLADES)
        clade = _ask_choice("Choose clade", CLADES)

    if reproduction is None:
        _print_menu("Reproduction mode", REPRODUCTION_MODES)
        reproduction = _ask_choice("Choose reproduction mode", REPRODUCTION_MODES)

    if lang is None:
        lang = _ask_default("Implementation language", reg.config.default_lang)

    if aliases is None:
        aliases = _ask_default("Aliases (comma-separated, or empty)", "")
    alias_list = [a.strip() for a in aliases.split(",") if a.strip()]

    if output_dir is None and not _get_json_output():
        default_dir = str(Path(HOLON_DIR_NAME) / holon_dir_name(given_name, family_name))
        output_dir = _ask_default("Output directory", default_dir)

    try:
        identity, path = reg.create_identity(
            given_name, family_name, motto, composer,
            clade=clade, reproduction=reproduction, lang=lang,
            aliases=alias_list, output_dir=output_dir,
        )
    except InvalidArgumentError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except OSError as e:
        typer.echo(f"Error: cannot write HOLON.md: {e}", err=True)
        raise typer.Exit(1)

    if _get_json_output():
        typer.echo(json.dumps({"identity": identity.to_dict(), "file_path": str(path)}, indent=2))
        return

    typer.echo(f"\n✓ Born: {identity.given_name} {identity.family_name}")
    typer.echo(f"  UUID: {identity.uuid}")
    typer.echo(f"  File: {path}")


@app.command()
def show(
    uuid: Annotated[str, typer.Argument(help="Full UUID or a unique prefix")],
):
    """
    Display a holon's HOLON.md, found by UUID or UUID prefix.

    Hidden directories are searched too.
    """
    reg = _get_registrar()
    try:
        identity, path, raw = reg.show_identity(uuid)
    except (WhoError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if _get_json_output():
        typer.echo(json.dumps({
            "identity": identity.to_dict(),
            "file_path": str(path),
            "raw_content": raw,
        }, indent=2, ensure_ascii=False))
        return

    typer.echo(raw)


_LIST_ROW = "{:<38} {:<33} {:<8} {:<25} {:<8} {}"


class _ListPrinter:
    """Streams the holon table to stdout and scan progress to stderr.

    On a terminal the progress line is redrawn in place and cleared before
    each table row; otherwise every report is its own line.
    """

    def __init__(self) -> None:
        self.inline_progress = sys.stderr.isatty()
        self.progress_visible = False
        self.printed_header = False
        self.printed_entries = 0
        self._last_reported: dict[str, int] = {}

    def clear_progress(self) -> None:
        if not self.inline_progress or not self.progress_visible:
            return
        sys.stderr.write("\r\033[2K")
        sys.stderr.flush()
        self.progress_visible = False

    def progress(self, label: str, p: ScanProgress) -> None:
        if p.scanned_files == 0 or p.scanned_files == self._last_reported.get(label):
            return
        self._last_reported[label] = p.scanned_files
        if not self.inline_progress:
            typer.echo(f"[scan] {label}: {p.scanned_files} files scanned", err=True)
            return
        sys.stderr.write(f"\r\033[2K[scan] {label}: {p.scanned_files} files scanned")
        sys.stderr.flush()
        self.progress_visible = True

    def entry(self, entry: HolonEntry) -> None:
        self.clear_progress()
        if not self.printed_header:
            typer.echo(_LIST_ROW.format("UUID", "NAME", "ORIGIN", "CLADE", "STATUS", "PATH"))
            typer.echo("─" * 150)
            self.printed_header = True
        i = entry.identity
        typer.echo(_LIST_ROW.format(
            i.uuid, i.display_name, entry.origin, i.clade, i.status, entry.relative_path,
        ))
        self.printed_entries += 1


@app.command("list")
def list_cmd(
    root: Annotated[Optional[str], typer.Argument(
        help="Directory to list (default: the project root)")] = None,
):
    """
    List local holons and the global holon cache.

    Local holons come from <root>/holons/ and <root> itself; cached ones
    from ~/.holon/cache/. Each row is labelled with its origin.
    """
    reg = _get_registrar()

    if _get_json_output():
        entries = reg.list_all(root)
        typer.echo(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False))
        return

    printer = _ListPrinter()
    reg.list_all(root, on_entry=printer.entry, on_progress=printer.progress)
    printer.clear_progress()

    if printer.printed_entries == 0:
        typer.echo("No holons found.")


def _parse_listen(uri: str) -> tuple[str, Optional[str], Optional[int]]:
    """Map a listen URI to (transport, host, port) for the MCP server."""
    if uri in ("stdio://", "stdio"):
        return "stdio", None, None
    if uri.startswith("tcp://"):
        host, sep, port = uri[len("tcp://"):].rpartition(":")
        if not sep or not port.isdecimal():
            raise typer.BadParameter(f"expected tcp://<host>:<port>, got {uri}")
        return "streamable-http", host or "0.0.0.0", int(port)
    raise typer.BadParameter(f"unsupported listen URI: {uri} (use stdio:// or tcp://<host>:<port>)")


@app.command()
def serve(
    listen: Annotated[str, typer.Option(
        "--listen", "-l",
        help="stdio:// or tcp://<host>:<port> (streamable HTTP)")] = "stdio://",
    port: Annotated[Optional[int], typer.Option(
        "--port", help="Shorthand for --listen tcp://:<port>")] = None,
):
    """Start the MCP server for AI agent integration."""
    if port is not None:
        listen = f"tcp://:{port}"
    transport, host, tcp_port = _parse_listen(listen)

    if _root_override is not None:
        os.environ["WHO_ROOT"] = str(_root_override)

    if transport != "stdio":
        typer.echo(f"Sophia Who? MCP server listening on {listen}", err=True)
    from .mcp import main as mcp_main
    mcp_main(transport, host, tcp_port)


@app.command()
def config(
    init: Annotated[bool, typer.Option(
        "--init", help="Write a config file with the current settings")] = False,
):
    """Show the effective configuration (from $WHO_HOME/who.toml)."""
    try:
        cfg = load_or_default_config(get_config_dir())
    except (ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if init:
        if cfg.exists():
            typer.echo(f"Config already exists: {cfg.config_path}")
        else:
            save_config(cfg)
            typer.echo(f"Wrote {cfg.config_path}")
        return

    values = {
        "file": str(cfg.config_path) if cfg.exists() else None,
        "cache_dir": str(cfg.cache_dir) if cfg.cache_dir else None,
        "progress_every": cfg.progress_every,
        "generated_by": cfg.generated_by,
        "default_lang": cfg.default_lang,
    }
    if _get_json_output():
        typer.echo(json.dumps(values, indent=2))
        return
    for key, value in values.items():
        if key == "file" and value is None:
            value = f"(none; defaults, {cfg.config_path} not found)"
        typer.echo(f"{key}: {value}")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="who CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
