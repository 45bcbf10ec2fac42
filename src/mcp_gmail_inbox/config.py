"""Startup configuration.

Values come from the process environment, optionally seeded from a
``secrets.env`` style key=value file. The file never overrides a variable
that is already set, so exported values always win.

Environment variables:
    GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET: OAuth client used for the
        authorization URL and token exchanges.
    GOOGLE_REDIRECT_URI: default redirect URI for gmail_get_auth_url.
    GOOGLE_ACCESS_TOKEN: default bearer token for Gmail calls.
    GOOGLE_REFRESH_TOKEN: default token for gmail_refresh_access_token.
    GMAIL_SECRETS_PATH: secrets file to load (default "secrets.env").
    GMAIL_MCP_LOG_LEVEL: logging level name (default "INFO").
    GMAIL_HTTP_TIMEOUT: seconds before an HTTP call is abandoned (default 30).
"""

import logging
import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from mcp_gmail_inbox.codec import get_string
from mcp_gmail_inbox.errors import CredentialError

logger = logging.getLogger(__name__)

DEFAULT_SECRETS_PATH = "secrets.env"
DEFAULT_HTTP_TIMEOUT = 30.0

AUTH_HELP_TEXT = (
    "Missing access token. Use gmail_get_auth_url to get an authorization URL, "
    "then gmail_exchange_code to obtain tokens. Alternatively, pass accessToken "
    "or set GOOGLE_ACCESS_TOKEN in secrets.env."
)


def load_secrets(
    path: str | Path, environ: MutableMapping[str, str] | None = None
) -> list[str]:
    """Merge a key=value file into ``environ`` without overwriting set values.

    Values are taken literally: no ${VAR} interpolation. Parsing follows
    python-dotenv, so an unquoted value ends at " #" (an inline comment);
    quote values that contain one.

    Returns the names of the variables that were added. A missing file is
    not an error.
    """
    if environ is None:
        environ = os.environ
    path = Path(path)
    if not path.is_file():
        logger.debug("No secrets file at %s", path)
        return []

    added = []
    for key, value in dotenv_values(path, interpolate=False).items():
        if not key or value is None:
            continue
        if environ.get(key):
            continue
        environ[key] = value.strip()
        added.append(key)
    logger.info("Loaded %d value(s) from %s", len(added), path)
    return added


def _http_timeout(value: str | None) -> float:
    if not value:
        return DEFAULT_HTTP_TIMEOUT
    try:
        timeout = float(value)
    except ValueError:
        timeout = 0.0
    if not 0 < timeout < float("inf"):
        logger.warning(
            "Ignoring GMAIL_HTTP_TIMEOUT=%r; using %s seconds", value, DEFAULT_HTTP_TIMEOUT
        )
        return DEFAULT_HTTP_TIMEOUT
    return timeout


@dataclass(frozen=True)
class ClientCredentials:
    client_id: str
    client_secret: str


@dataclass(frozen=True)
class Settings:
    """Read-only configuration handed to the toolbox at startup."""

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        if environ is None:
            environ = os.environ
        return cls(
            client_id=get_string(environ.get("GOOGLE_CLIENT_ID")),
            client_secret=get_string(environ.get("GOOGLE_CLIENT_SECRET")),
            redirect_uri=get_string(environ.get("GOOGLE_REDIRECT_URI")),
            access_token=get_string(environ.get("GOOGLE_ACCESS_TOKEN")),
            refresh_token=get_string(environ.get("GOOGLE_REFRESH_TOKEN")),
            http_timeout=_http_timeout(get_string(environ.get("GMAIL_HTTP_TIMEOUT"))),
            log_level=(get_string(environ.get("GMAIL_MCP_LOG_LEVEL")) or "INFO").upper(),
        )

    @classmethod
    def load(cls, environ: MutableMapping[str, str] | None = None) -> "Settings":
        """Load the secrets file named by GMAIL_SECRETS_PATH, then read settings."""
        if environ is None:
            environ = os.environ
        load_secrets(environ.get("GMAIL_SECRETS_PATH") or DEFAULT_SECRETS_PATH, environ)
        return cls.from_env(environ)

    def client_credentials(self) -> ClientCredentials:
        if not self.client_id or not self.client_secret:
            raise CredentialError(
                "Missing GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET. Add them to secrets.env."
            )
        return ClientCredentials(self.client_id, self.client_secret)

    def auth_env_status(self) -> dict[str, bool]:
        """Which credentials are configured. Never includes the values."""
        return {
            "hasClientId": bool(self.client_id),
            "hasClientSecret": bool(self.client_secret),
            "hasAccessToken": bool(self.access_token),
            "hasRefreshToken": bool(self.refresh_token),
            "hasRedirectUri": bool(self.redirect_uri),
        }
