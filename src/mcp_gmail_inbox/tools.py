"""Tool catalog and argument validation.

Each tool declares a JSON schema for its arguments. ``validate_arguments``
checks a caller's argument bag against that schema before anything else
runs: unknown fields and wrongly typed values are rejected, strings are
trimmed, absent values take their schema default.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mcp_gmail_inbox.api import DEFAULT_SCOPE
from mcp_gmail_inbox.codec import get_number, get_string
from mcp_gmail_inbox.errors import ArgumentError

MAX_RESULTS_LIMIT = 500


class ToolName(str, Enum):
    GET_TIME = "get_time"
    GMAIL_GET_AUTH_URL = "gmail_get_auth_url"
    GMAIL_EXCHANGE_CODE = "gmail_exchange_code"
    GMAIL_REFRESH_ACCESS_TOKEN = "gmail_refresh_access_token"
    GET_UNREAD_EMAILS = "get_unread_emails"
    CREATE_DRAFT_REPLY = "create_draft_reply"


@dataclass(frozen=True)
class ToolDescriptor:
    name: ToolName
    description: str
    properties: dict[str, dict[str, Any]] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": copy.deepcopy(self.properties),
            "required": list(self.required),
            "additionalProperties": False,
        }


_ACCESS_TOKEN = {
    "type": "string",
    "description": "OAuth access token. Defaults to GOOGLE_ACCESS_TOKEN.",
}
_USER_ID = {"type": "string", "default": "me"}

CATALOG: dict[ToolName, ToolDescriptor] = {
    tool.name: tool
    for tool in (
        ToolDescriptor(
            name=ToolName.GET_TIME,
            description="Gets the current time",
        ),
        ToolDescriptor(
            name=ToolName.GET_UNREAD_EMAILS,
            description="List unread Gmail messages with sender, subject, snippet, and IDs",
            properties={
                "accessToken": _ACCESS_TOKEN,
                "userId": _USER_ID,
                "maxResults": {
                    "type": "integer",
                    "default": 10,
                    "minimum": 0,
                    "maximum": MAX_RESULTS_LIMIT,
                },
            },
        ),
        ToolDescriptor(
            name=ToolName.GMAIL_GET_AUTH_URL,
            description="Create a Google OAuth URL for Gmail access",
            properties={
                "redirectUri": {
                    "type": "string",
                    "description": "Defaults to GOOGLE_REDIRECT_URI.",
                },
                "scope": {
                    "type": "array",
                    "items": {"type": "string"},
                    "default": [DEFAULT_SCOPE],
                },
                "accessType": {
                    "type": "string",
                    "enum": ["online", "offline"],
                    "default": "offline",
                },
                "prompt": {
                    "type": "string",
                    "enum": ["consent", "none", "select_account"],
                },
            },
        ),
        ToolDescriptor(
            name=ToolName.GMAIL_EXCHANGE_CODE,
            description="Exchange an OAuth authorization code for tokens",
            properties={
                "code": {"type": "string"},
                "redirectUri": {"type": "string"},
            },
            required=("code", "redirectUri"),
        ),
        ToolDescriptor(
            name=ToolName.GMAIL_REFRESH_ACCESS_TOKEN,
            description="Exchange a refresh token for a new access token",
            properties={
                "refreshToken": {
                    "type": "string",
                    "description": "Defaults to GOOGLE_REFRESH_TOKEN.",
                },
            },
        ),
        ToolDescriptor(
            name=ToolName.CREATE_DRAFT_REPLY,
            description="Create a draft reply to a message ID with plain text content",
            properties={
                "accessToken": _ACCESS_TOKEN,
                "userId": _USER_ID,
                "messageId": {"type": "string"},
                "body": {"type": "string"},
            },
            required=("messageId", "body"),
        ),
    )
}


def list_tools() -> list[ToolDescriptor]:
    return list(CATALOG.values())


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _coerce_string(key: str, value: Any, schema: dict) -> str | None:
    if not isinstance(value, str):
        raise ArgumentError(f"Argument '{key}' must be a string.")
    text = get_string(value)
    allowed = schema.get("enum")
    if text is not None and allowed and text not in allowed:
        raise ArgumentError(f"Argument '{key}' must be one of: {', '.join(allowed)}.")
    return text


def _coerce_integer(key: str, value: Any, schema: dict) -> int:
    number = get_number(value)
    if number is None or number != int(number):
        raise ArgumentError(f"Argument '{key}' must be an integer.")
    number = int(number)
    low, high = schema.get("minimum"), schema.get("maximum")
    if (low is not None and number < low) or (high is not None and number > high):
        raise ArgumentError(f"Argument '{key}' must be between {low} and {high}.")
    return number


def _coerce_string_list(key: str, value: Any) -> list[str] | None:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ArgumentError(f"Argument '{key}' must be an array of strings.")
    items = [s for s in (get_string(v) for v in value) if s]
    return items or None


def validate_arguments(tool: ToolDescriptor, arguments: Any) -> dict[str, Any]:
    """Check ``arguments`` against the tool's schema and return clean values.

    Every declared property appears in the result: the caller's value when
    given, else the schema default, else None.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ArgumentError("Arguments must be an object.")

    unknown = sorted(set(arguments) - set(tool.properties))
    if unknown:
        raise ArgumentError(f"Unknown argument(s) for {tool.name.value}: {', '.join(unknown)}.")

    clean: dict[str, Any] = {}
    for key, schema in tool.properties.items():
        value = arguments.get(key)
        if value is not None:
            kind = schema["type"]
            if kind == "string":
                value = _coerce_string(key, value, schema)
            elif kind == "integer":
                value = _coerce_integer(key, value, schema)
            elif kind == "array":
                value = _coerce_string_list(key, value)
        if value is None:
            value = copy.deepcopy(schema.get("default"))
        clean[key] = value

    missing = [key for key in tool.required if clean.get(key) is None]
    if missing:
        raise ArgumentError(f"Missing required fields: {', '.join(missing)}.")
    return clean
