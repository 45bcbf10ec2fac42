"""Building a threaded plain-text reply from the original message's headers."""

from dataclasses import dataclass
from typing import Any

from mcp_gmail_inbox.codec import build_plain_text_email
from mcp_gmail_inbox.errors import ArgumentError
from mcp_gmail_inbox.mime import get_header_value


@dataclass(frozen=True)
class ReplyHeaders:
    to: str
    subject: str
    body: str
    in_reply_to: str | None = None
    references: str | None = None


def reply_subject(subject: str | None) -> str:
    subject = subject or ""
    if subject.lower().startswith("re:"):
        return subject
    return f"Re: {subject}".strip()


def chain_references(references: str | None, message_id: str | None) -> str | None:
    """Append the original Message-ID to its References chain."""
    if not message_id:
        return references
    return " ".join(part for part in (references, message_id) if part)


def compose_reply(payload: Any, body: str) -> ReplyHeaders:
    """Derive reply headers from an original message payload.

    The recipient is Reply-To when present, else From. Raises ArgumentError
    if neither header exists.
    """
    to = get_header_value(payload, "Reply-To") or get_header_value(payload, "From")
    if not to:
        raise ArgumentError("Could not determine reply recipient.")
    message_id = get_header_value(payload, "Message-ID")
    return ReplyHeaders(
        to=to,
        subject=reply_subject(get_header_value(payload, "Subject")),
        body=body,
        in_reply_to=message_id or None,
        references=chain_references(get_header_value(payload, "References"), message_id) or None,
    )


def build_reply_mime(headers: ReplyHeaders) -> str:
    threading = []
    if headers.in_reply_to:
        threading.append(("In-Reply-To", headers.in_reply_to))
    if headers.references:
        threading.append(("References", headers.references))
    return build_plain_text_email(headers.to, headers.subject, headers.body, threading)
