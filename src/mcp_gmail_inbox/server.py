"""MCP server for a small set of Gmail tools.

Provides tools for listing unread messages, drafting threaded replies, and
walking through the OAuth authorization-code and refresh-token exchanges.

Configuration (see ``mcp_gmail_inbox.config``):
    GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET: OAuth client.
    GOOGLE_REDIRECT_URI: default redirect URI for the authorization URL.
    GOOGLE_ACCESS_TOKEN / GOOGLE_REFRESH_TOKEN: default tokens.
    GMAIL_SECRETS_PATH: optional key=value file seeding the variables above.
"""

import logging
import os
import sys
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.types import TextContent, Tool

from mcp_gmail_inbox.config import Settings
from mcp_gmail_inbox.dispatcher import GmailToolbox, ToolResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

SERVER_NAME = "Gmail Inbox"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _resolved_host(environ: Mapping[str, str]) -> str:
    return environ.get("HOST", environ.get("FASTMCP_HOST", "0.0.0.0"))


def _resolved_port(environ: Mapping[str, str]) -> int:
    return int(environ.get("PORT", environ.get("FASTMCP_PORT", "8000")))


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@dataclass
class GmailContext:
    """Context holding the toolbox for the lifetime of a session."""

    toolbox: GmailToolbox


@asynccontextmanager
async def gmail_lifespan(server: "GmailMCP") -> AsyncIterator[GmailContext]:
    """Hand out the toolbox and release its HTTP session on shutdown."""
    try:
        yield GmailContext(toolbox=server.toolbox)
    finally:
        server.toolbox.close()


# ---------------------------------------------------------------------------
# FastMCP server
# ---------------------------------------------------------------------------


def to_text_content(result: ToolResult) -> list[TextContent]:
    return [TextContent(type="text", text=block["text"]) for block in result.content]


class GmailMCP(FastMCP):
    """FastMCP server whose tools come from a fixed catalog.

    Tool listing and calls are answered by a ``GmailToolbox`` instead of
    decorated functions, so the advertised schemas are exactly the ones the
    toolbox validates against.
    """

    def __init__(self, toolbox: GmailToolbox, **settings: Any):
        self.toolbox = toolbox
        super().__init__(
            SERVER_NAME,
            dependencies=["google-auth", "requests", "python-dotenv"],
            lifespan=gmail_lifespan,
            **settings,
        )

    async def list_tools(self) -> list[Tool]:
        return [
            Tool(
                name=tool.name.value,
                description=tool.description,
                inputSchema=tool.input_schema,
            )
            for tool in self.toolbox.list_tools()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Sequence[TextContent]:
        return to_text_content(self.toolbox.call_tool(name, arguments))


def create_server(settings: Settings, environ: Mapping[str, str] | None = None) -> GmailMCP:
    if environ is None:
        environ = os.environ
    return GmailMCP(
        GmailToolbox(settings),
        host=_resolved_host(environ),
        port=_resolved_port(environ),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    settings = Settings.load()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, stream=sys.stderr)

    transport = "stdio"
    for i, arg in enumerate(sys.argv):
        if arg == "--transport" and i + 1 < len(sys.argv):
            transport = sys.argv[i + 1]
            break

    server = create_server(settings)
    logger.info("Starting %s on %s", SERVER_NAME, transport)
    server.run(transport=transport)


if __name__ == "__main__":
    main()
