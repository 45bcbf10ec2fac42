"""Reading Gmail ``MessagePart`` payloads."""

from collections import deque
from typing import Any

from mcp_gmail_inbox.codec import base64url_decode, decode_html_entities


def _inline_data(part: dict) -> str | None:
    body = part.get("body")
    if not isinstance(body, dict):
        return None
    return body.get("data") or None


def _decode(data: str) -> str:
    return decode_html_entities(base64url_decode(data))


def extract_plain_text(payload: Any) -> str | None:
    """Return the first inline text/plain body in a message payload.

    A payload that carries data itself is decoded as is. Otherwise the part
    tree is searched breadth-first, so a shallow text/plain part wins over a
    deeper one. Returns None if there is no such part.
    """
    if not isinstance(payload, dict):
        return None
    data = _inline_data(payload)
    if data:
        return _decode(data)

    children = payload.get("parts")
    queue = deque(children if isinstance(children, list) else [])
    while queue:
        part = queue.popleft()
        if not isinstance(part, dict):
            continue
        data = _inline_data(part)
        if part.get("mimeType") == "text/plain" and data:
            return _decode(data)
        children = part.get("parts")
        if isinstance(children, list):
            queue.extend(children)
    return None


def get_header_value(payload: Any, name: str) -> str | None:
    if not isinstance(payload, dict):
        return None
    headers = payload.get("headers")
    if not isinstance(headers, list):
        return None
    wanted = name.lower()
    for header in headers:
        if not isinstance(header, dict):
            continue
        header_name = header.get("name")
        if isinstance(header_name, str) and header_name.lower() == wanted:
            value = header.get("value")
            return value if isinstance(value, str) else None
    return None
