"""HTTP access to Google's OAuth and Gmail REST endpoints.

Token endpoint calls go through a plain ``requests.Session``; Gmail calls go
through a google-auth ``AuthorizedSession`` wrapping a bearer-only
``Credentials`` object, which adds the ``Authorization: Bearer`` header. The
session never refreshes on its own: token refresh is a separate tool.
"""

import json
import logging
from typing import Any
from urllib.parse import quote, urlsplit

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials

from mcp_gmail_inbox.config import DEFAULT_HTTP_TIMEOUT
from mcp_gmail_inbox.errors import RemoteApiError

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"

DEFAULT_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"

REPLY_METADATA_HEADERS = ["From", "Reply-To", "Subject", "Message-ID", "References"]


# ---------------------------------------------------------------------------
# Request helper
# ---------------------------------------------------------------------------


def _error_message(data: Any, status_code: int) -> str:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("error_description"):
            return str(data["error_description"])
    return f"Request failed with status {status_code}"


def fetch_json(
    session: requests.Session,
    method: str,
    url: str,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    **kwargs: Any,
) -> Any:
    """Issue one request and return the decoded JSON body.

    An empty body decodes to None and a body that is not JSON is returned as
    ``{"raw": text}``. Non-2xx responses raise RemoteApiError carrying the
    API's own error message when it sent one.
    """
    path = urlsplit(url).path
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        logger.warning("%s %s failed: %s", method, path, e)
        raise RemoteApiError(f"Request to {path} failed: {e}") from e

    logger.debug("%s %s -> %s", method, path, response.status_code)
    text = response.text
    data: Any = None
    if text:
        try:
            data = json.loads(text)
        except ValueError:
            data = {"raw": text}

    if not 200 <= response.status_code < 300:
        message = _error_message(data, response.status_code)
        logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
        raise RemoteApiError(message, status_code=response.status_code)
    return data


def bearer_session(access_token: str) -> AuthorizedSession:
    credentials = Credentials(token=access_token)
    return AuthorizedSession(credentials, refresh_status_codes=())


# ---------------------------------------------------------------------------
# Gmail REST client
# ---------------------------------------------------------------------------


def gmail_url(user_id: str, *segments: str) -> str:
    parts = [quote(user_id, safe="")] + [quote(s, safe="") for s in segments]
    return f"{GMAIL_API_BASE}/users/" + "/".join(parts)


class GmailClient:
    """The few Gmail endpoints the tools use, bound to one user and session."""

    def __init__(self, session: requests.Session, user_id: str = "me", timeout: float = DEFAULT_HTTP_TIMEOUT):
        self.session = session
        self.user_id = user_id
        self.timeout = timeout

    def _get(self, url: str, params: list[tuple[str, str]]) -> Any:
        return fetch_json(self.session, "GET", url, timeout=self.timeout, params=params)

    def list_unread(self, max_results: int) -> list[dict]:
        data = self._get(
            gmail_url(self.user_id, "messages"),
            [("q", "is:unread"), ("maxResults", str(max_results))],
        )
        if not isinstance(data, dict):
            return []
        return data.get("messages") or []

    def get_message(self, message_id: str) -> dict:
        data = self._get(gmail_url(self.user_id, "messages", message_id), [("format", "full")])
        return data if isinstance(data, dict) else {}

    def get_message_metadata(self, message_id: str, headers: list[str]) -> dict:
        data = self._get(
            gmail_url(self.user_id, "messages", message_id),
            [("format", "metadata")] + [("metadataHeaders", h) for h in headers],
        )
        return data if isinstance(data, dict) else {}

    def create_draft(self, raw: str, thread_id: str | None = None) -> Any:
        message: dict[str, str] = {"raw": raw}
        if thread_id:
            message["threadId"] = thread_id
        return fetch_json(
            self.session,
            "POST",
            gmail_url(self.user_id, "drafts"),
            timeout=self.timeout,
            json={"message": message},
        )


# ---------------------------------------------------------------------------
# OAuth token endpoint
# ---------------------------------------------------------------------------


def post_token_request(
    session: requests.Session, form: dict[str, str], timeout: float = DEFAULT_HTTP_TIMEOUT
) -> Any:
    return fetch_json(
        session,
        "POST",
        TOKEN_URL,
        timeout=timeout,
        data=form,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
