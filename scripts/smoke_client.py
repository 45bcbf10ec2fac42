"""Manual end-to-end check against a live Gmail account.

Starts the server over stdio, lists its tools, then either fetches unread
messages or drafts a reply to one of them. Needs GOOGLE_ACCESS_TOKEN in the
environment or in secrets.env.

    python scripts/smoke_client.py --max 5
    python scripts/smoke_client.py --reply-to <message id> --body "Thanks!"
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from mcp_gmail_inbox.config import DEFAULT_SECRETS_PATH, load_secrets

logger = logging.getLogger("smoke_client")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--max", type=int, default=5, help="unread messages to fetch")
    parser.add_argument("--reply-to", help="message ID to draft a reply to")
    parser.add_argument("--body", default="Hello from the MCP smoke test.")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "mcp_gmail_inbox.server"],
        env=dict(os.environ),
    )
    async with stdio_client(params) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            tools = await session.list_tools()
            logger.info("Available tools: %s", ", ".join(t.name for t in tools.tools) or "(none)")

            if args.reply_to:
                result = await session.call_tool(
                    "create_draft_reply",
                    {"messageId": args.reply_to, "body": args.body},
                )
            else:
                result = await session.call_tool("get_unread_emails", {"maxResults": args.max})

            for block in result.content:
                print(json.dumps(json.loads(block.text), indent=2) if block.text.startswith("{") else block.text)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    load_secrets(os.environ.get("GMAIL_SECRETS_PATH") or DEFAULT_SECRETS_PATH)
    if not os.environ.get("GOOGLE_ACCESS_TOKEN"):
        sys.exit("Missing GOOGLE_ACCESS_TOKEN. Add it to secrets.env or export it before running.")
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
