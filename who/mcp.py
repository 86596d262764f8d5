"""
MCP server for who: holon identity tools for AI agents.

Exposes the three Registrar operations as MCP tools:

    who_create   create a holon identity and write its HOLON.md
    who_show     resolve a UUID (or prefix) and return the record + raw file
    who_list     list the holons under one directory

Usage:
    who serve                               # stdio server (via CLI)
    who serve --listen tcp://127.0.0.1:9090 # streamable HTTP
    <mcp-client> add who -- who serve      # register with an MCP client

Lookups are relative to $WHO_ROOT (default: the server's working
directory). All tool calls are serialized through a single asyncio.Lock.
"""

import asyncio
import json
import os
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from .api import Registrar
from .errors import HolonNotFoundError, WhoError

# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "who",
    instructions=(
        "Holon identity manager. "
        "Create holon identities (HOLON.md), look them up by UUID or UUID prefix, "
        "and list the holons in a project."
    ),
)

_registrar: Optional[Registrar] = None
_lock = asyncio.Lock()


def _get_registrar() -> Registrar:
    """Lazy-init Registrar rooted at $WHO_ROOT or the working directory.

    Must be called inside ``async with _lock``.
    """
    global _registrar
    if _registrar is None:
        _registrar = Registrar(os.environ.get("WHO_ROOT") or ".")
    return _registrar


def _dump(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


# ---------------------------------------------------------------------------
# Tool annotations
# ---------------------------------------------------------------------------

_READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False)
_CREATE = ToolAnnotations(destructiveHint=False, idempotentHint=False)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool(
    description=(
        "Create a new holon identity: generates a UUID, writes HOLON.md, "
        "and returns the identity with the file path."
    ),
    annotations=_CREATE,
)
async def who_create(
    given_name: Annotated[str, Field(description="The character, e.g. 'Swift'.")],
    family_name: Annotated[str, Field(description="The function, e.g. 'Transcriber'.")],
    motto: Annotated[str, Field(description="The holon's purpose in one sentence.")],
    composer: Annotated[str, Field(description="Who is making this decision.")],
    clade: Annotated[Optional[str], Field(
        description='Computational nature, e.g. "deterministic/pure" or "PROBABILISTIC_GENERATIVE". '
                    "Default: deterministic/pure.",
    )] = None,
    reproduction: Annotated[Optional[str], Field(
        description='manual, assisted, automatic, autopoietic or bred. Default: manual.',
    )] = None,
    lang: Annotated[Optional[str], Field(description="Implementation language.")] = None,
    aliases: Annotated[Optional[list[str]], Field(description="Alternative names.")] = None,
    output_dir: Annotated[Optional[str], Field(
        description="Directory for HOLON.md. Default: .holon/<given>-<family>.",
    )] = None,
) -> str:
    """Create a holon identity."""
    async with _lock:
        registrar = _get_registrar()
        try:
            identity, path = registrar.create_identity(
                given_name, family_name, motto, composer,
                clade=clade, reproduction=reproduction, lang=lang,
                aliases=aliases, output_dir=output_dir,
            )
        except (WhoError, OSError) as e:
            return f"Error: {e}"

    return _dump({"identity": identity.to_dict(), "file_path": str(path)})


@mcp.tool(
    description=(
        "Show a holon's identity by full UUID or UUID prefix. "
        "Returns the parsed record, the HOLON.md path and its raw content."
    ),
    annotations=_READ_ONLY,
)
async def who_show(
    uuid: Annotated[str, Field(description="Full UUID or a unique prefix.")],
) -> str:
    """Show a holon identity."""
    async with _lock:
        registrar = _get_registrar()
        try:
            identity, path, raw = registrar.show_identity(uuid)
        except HolonNotFoundError:
            return f"Not found: {uuid}"
        except (WhoError, OSError) as e:
            return f"Error: {e}"

    return _dump({
        "identity": identity.to_dict(),
        "file_path": str(path),
        "raw_content": raw,
    })


@mcp.tool(
    description=(
        "List all holons found under a directory (default: the server root), "
        "with their paths relative to that directory."
    ),
    annotations=_READ_ONLY,
)
async def who_list(
    root_dir: Annotated[Optional[str], Field(
        description="Directory to scan. Relative paths are taken from the server root.",
    )] = None,
) -> str:
    """List holon identities."""
    async with _lock:
        registrar = _get_registrar()
        try:
            entries = registrar.list_identities(root_dir)
        except OSError as e:
            return f"Error: {e}"

    return _dump({"entries": [e.to_dict() for e in entries]})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(transport: str = "stdio", host: Optional[str] = None, port: Optional[int] = None):
    """Run the MCP server over stdio or streamable HTTP."""
    if transport == "stdio":
        import signal
        # anyio's stdin reader shields the blocking readline from
        # cancellation, so the first Ctrl+C would otherwise do nothing.
        signal.signal(signal.SIGINT, lambda *_: os._exit(130))
    if host:
        mcp.settings.host = host
    if port is not None:
        mcp.settings.port = port
    mcp.run(transport=transport)


if __name__ == "__main__":
    main()
