"""Pure string, number and MIME helpers shared by the Gmail tools."""

import base64
import math
import re

# ---------------------------------------------------------------------------
# Argument coercion
# ---------------------------------------------------------------------------


def get_string(value: object) -> str | None:
    """Return a trimmed string without trailing backslashes.

    Non-strings and blank values give None.
    """
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    return trimmed.rstrip("\\")


def get_number(value: object) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


# ---------------------------------------------------------------------------
# base64url
# ---------------------------------------------------------------------------


def base64url_encode(text: str) -> str:
    encoded = base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def base64url_decode(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# HTML entities
# ---------------------------------------------------------------------------

NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "nbsp": "\u00a0",
}

_ENTITY_RE = re.compile(r"&(#[xX][0-9a-fA-F]+|#[0-9]+|[a-zA-Z]+);")


def _replace_entity(match: re.Match) -> str:
    token = match.group(1)
    if not token.startswith("#"):
        return NAMED_ENTITIES.get(token, match.group(0))
    try:
        if token[1] in "xX":
            return chr(int(token[2:], 16))
        return chr(int(token[1:]))
    except (ValueError, OverflowError):
        return match.group(0)


def decode_html_entities(text: str) -> str:
    """Decode the handful of entities Gmail leaves in plain-text bodies.

    Only the named entities in NAMED_ENTITIES plus decimal and hex character
    references are handled. Anything else, including references to invalid
    code points, is left as written.
    """
    return _ENTITY_RE.sub(_replace_entity, text)


# ---------------------------------------------------------------------------
# Plain-text email
# ---------------------------------------------------------------------------


def build_plain_text_email(
    to: str,
    subject: str,
    body: str,
    extra_headers: list[tuple[str, str]] | None = None,
) -> str:
    """Serialize a single-part text/plain message with CRLF line endings."""
    lines = [
        f"To: {to}",
        "Content-Type: text/plain; charset=utf-8",
        "MIME-Version: 1.0",
        f"Subject: {subject}",
    ]
    for name, value in extra_headers or []:
        lines.append(f"{name}: {value}")
    lines.extend(["", body])
    return "\r\n".join(lines)
