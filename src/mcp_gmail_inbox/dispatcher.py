"""Tool dispatch.

``GmailToolbox.call_tool`` is the single entry point for a tool call. It
never raises: argument, credential and remote API failures all come back as
a ``Failure`` result carrying the error message and which credentials are
configured.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

import requests

from mcp_gmail_inbox.api import (
    AUTH_URL,
    REPLY_METADATA_HEADERS,
    GmailClient,
    bearer_session,
    post_token_request,
)
from mcp_gmail_inbox.codec import base64url_encode
from mcp_gmail_inbox.config import AUTH_HELP_TEXT, Settings
from mcp_gmail_inbox.errors import ArgumentError, CredentialError, GmailToolError
from mcp_gmail_inbox.mime import extract_plain_text, get_header_value
from mcp_gmail_inbox.reply import build_reply_mime, compose_reply
from mcp_gmail_inbox.tools import CATALOG, ToolDescriptor, ToolName, list_tools, validate_arguments

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    texts: tuple[str, ...]

    @property
    def content(self) -> list[dict[str, str]]:
        return [{"type": "text", "text": text} for text in self.texts]


@dataclass(frozen=True)
class Failure:
    message: str
    details: dict[str, Any] | None = None

    @property
    def content(self) -> list[dict[str, str]]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return [{"type": "text", "text": json.dumps(payload)}]


ToolResult = Success | Failure


def _text(text: str) -> Success:
    return Success((text,))


def _json(data: Any) -> Success:
    return Success((json.dumps(data),))


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

# One handler per ToolName; checked below so a new tool cannot ship unhandled.
_HANDLERS: dict[ToolName, str] = {
    ToolName.GET_TIME: "_get_time",
    ToolName.GMAIL_GET_AUTH_URL: "_get_auth_url",
    ToolName.GMAIL_EXCHANGE_CODE: "_exchange_code",
    ToolName.GMAIL_REFRESH_ACCESS_TOKEN: "_refresh_access_token",
    ToolName.GET_UNREAD_EMAILS: "_get_unread_emails",
    ToolName.CREATE_DRAFT_REPLY: "_create_draft_reply",
}

if set(_HANDLERS) != set(ToolName) or set(CATALOG) != set(ToolName):
    raise RuntimeError("Every ToolName needs both a catalog entry and a handler")


class GmailToolbox:
    """Runs tool calls against Google's OAuth and Gmail endpoints."""

    def __init__(
        self,
        settings: Settings,
        token_session: requests.Session | None = None,
        session_factory: Callable[[str], requests.Session] = bearer_session,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings
        self.token_session = token_session or requests.Session()
        self.session_factory = session_factory
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def close(self) -> None:
        self.token_session.close()

    def list_tools(self) -> list[ToolDescriptor]:
        return list_tools()

    def call_tool(self, name: str, arguments: Any = None) -> ToolResult:
        try:
            tool = ToolName(name)
        except ValueError:
            logger.warning("Unknown tool requested: %s", name)
            return Failure(f"Unknown tool: {name}")

        status = self.settings.auth_env_status()
        try:
            args = validate_arguments(CATALOG[tool], arguments)
            logger.info("Calling tool %s", tool.value)
            return getattr(self, _HANDLERS[tool])(args)
        except GmailToolError as e:
            logger.info("Tool %s failed: %s", tool.value, e.message)
            return Failure(e.message, status)
        except Exception as e:
            logger.exception("Tool %s raised unexpectedly", tool.value)
            return Failure(str(e) or type(e).__name__, status)

    # -- helpers -----------------------------------------------------------

    def _access_token(self, args: dict[str, Any]) -> str:
        token = args.get("accessToken") or self.settings.access_token
        if not token:
            raise CredentialError(AUTH_HELP_TEXT)
        return token

    def _post_token(self, form: dict[str, str]) -> Any:
        return post_token_request(self.token_session, form, timeout=self.settings.http_timeout)

    # -- handlers ----------------------------------------------------------

    def _get_time(self, args: dict[str, Any]) -> ToolResult:
        now = self.clock().astimezone(timezone.utc)
        iso = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return _text(f"Current time: {iso}")

    def _get_auth_url(self, args: dict[str, Any]) -> ToolResult:
        redirect_uri = args["redirectUri"] or self.settings.redirect_uri
        if not redirect_uri:
            raise ArgumentError(
                "Missing redirectUri. Pass redirectUri or set GOOGLE_REDIRECT_URI in secrets.env."
            )
        credentials = self.settings.client_credentials()
        params = {
            "client_id": credentials.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(args["scope"]),
            "access_type": args["accessType"],
        }
        if args["prompt"]:
            params["prompt"] = args["prompt"]
        return _text(f"{AUTH_URL}?{urlencode(params)}")

    def _exchange_code(self, args: dict[str, Any]) -> ToolResult:
        credentials = self.settings.client_credentials()
        data = self._post_token(
            {
                "code": args["code"],
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "redirect_uri": args["redirectUri"],
                "grant_type": "authorization_code",
            }
        )
        return _json(data)

    def _refresh_access_token(self, args: dict[str, Any]) -> ToolResult:
        refresh_token = args["refreshToken"] or self.settings.refresh_token
        if not refresh_token:
            raise ArgumentError(
                "Missing refresh token. Set GOOGLE_REFRESH_TOKEN or pass refreshToken."
            )
        credentials = self.settings.client_credentials()
        data = self._post_token(
            {
                "refresh_token": refresh_token,
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "grant_type": "refresh_token",
            }
        )
        return _json(data)

    def _get_unread_emails(self, args: dict[str, Any]) -> ToolResult:
        token = self._access_token(args)
        with self.session_factory(token) as session:
            client = GmailClient(session, args["userId"], timeout=self.settings.http_timeout)
            stubs = client.list_unread(args["maxResults"])
            messages = []
            # Sequential and all-or-nothing: one failed fetch fails the call.
            for stub in stubs:
                if not isinstance(stub, dict) or not stub.get("id"):
                    continue
                msg = client.get_message(stub["id"])
                payload = msg.get("payload")
                messages.append(
                    {
                        "id": msg.get("id"),
                        "threadId": msg.get("threadId"),
                        "from": get_header_value(payload, "From"),
                        "subject": get_header_value(payload, "Subject"),
                        "snippet": msg.get("snippet"),
                        "text": extract_plain_text(payload),
                    }
                )
        logger.info("Fetched %d unread message(s)", len(messages))
        return _json({"messages": messages})

    def _create_draft_reply(self, args: dict[str, Any]) -> ToolResult:
        token = self._access_token(args)
        with self.session_factory(token) as session:
            client = GmailClient(session, args["userId"], timeout=self.settings.http_timeout)
            original = client.get_message_metadata(args["messageId"], REPLY_METADATA_HEADERS)
            headers = compose_reply(original.get("payload"), args["body"])
            raw = base64url_encode(build_reply_mime(headers))
            draft = client.create_draft(raw, thread_id=original.get("threadId"))
        return _json(draft)
