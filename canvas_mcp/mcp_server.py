"""MCP server exposing the Canvas dispatcher over stdio.

Tools are the operation catalogue; resources are the ``type://id``
addresses resolved by the dispatcher. The dispatcher owns argument
validation, so the SDK's own schema check is turned off.

Run: canvas-mcp  (or  py -m canvas_mcp)
Requires: CANVAS_API_TOKEN and CANVAS_DOMAIN in the environment or .env
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from canvas_mcp import config
from canvas_mcp.client import CanvasClient
from canvas_mcp.dispatcher import MIME_JSON, Dispatcher, envelope_text
from canvas_mcp.exceptions import SetupError


class ToolCallError(Exception):
    """Carries an error envelope's text; the SDK reports it as an isError result."""


class CanvasServer:
    """Bind a Dispatcher to the MCP low-level server handlers."""

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher
        # Serializes Canvas calls; each one runs in a worker thread.
        self._lock = asyncio.Lock()
        self.server: Server = Server(config.SERVER_NAME, version=config.VERSION)
        self.server.list_resources()(self.list_resources)
        self.server.read_resource()(self.read_resource)
        self.server.list_tools()(self.list_tools)
        self.server.call_tool(validate_input=False)(self.call_tool)

    async def _run(self, func, *args):
        async with self._lock:
            return await asyncio.to_thread(func, *args)

    async def list_resources(self) -> list[types.Resource]:
        entries = await self._run(self.dispatcher.list_resources)
        return [
            types.Resource(
                uri=entry["uri"],
                name=entry["name"],
                description=entry["description"],
                mimeType=entry["mimeType"],
            )
            for entry in entries
        ]

    async def read_resource(self, uri: Any) -> list[ReadResourceContents]:
        text = await self._run(self.dispatcher.read_resource, str(uri))
        return [ReadResourceContents(content=text, mime_type=MIME_JSON)]

    async def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(name=op["name"], description=op["description"], inputSchema=op["inputSchema"])
            for op in self.dispatcher.list_operations()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        envelope = await self._run(self.dispatcher.call_operation, name, arguments)
        text = envelope_text(envelope)
        if envelope.get("ok") is False:
            raise ToolCallError(text)
        return [types.TextContent(type="text", text=text)]

    async def run(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def build_server(token: str, domain: str) -> CanvasServer:
    """Wire client, dispatcher and MCP server for one Canvas instance."""
    return CanvasServer(Dispatcher(CanvasClient(token, domain)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canvas-mcp",
        description="MCP server for the Canvas LMS REST API (stdio transport).",
    )
    parser.add_argument("--version", action="version", version=f"canvas-mcp {config.VERSION}")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log HTTP requests to stderr"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the MCP server (stdio transport)."""
    ns = build_parser().parse_args(argv)
    if ns.verbose:
        config.HTTP_LOG_ENABLED = True
    try:
        token, domain = config.require_credentials()
    except SetupError as e:
        print(str(e), file=sys.stderr)
        sys.exit(e.exit_code)
    server = build_server(token, domain)
    print(f"Canvas MCP server running on stdio ({domain})", file=sys.stderr)
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
