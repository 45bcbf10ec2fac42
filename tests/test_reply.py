"""Tests for reply header derivation and serialization."""

import pytest

from mcp_gmail_inbox.errors import ArgumentError
from mcp_gmail_inbox.reply import (
    ReplyHeaders,
    build_reply_mime,
    chain_references,
    compose_reply,
    reply_subject,
)


def _payload(**headers: str) -> dict:
    return {"headers": [{"name": k.replace("_", "-"), "value": v} for k, v in headers.items()]}


@pytest.mark.parametrize(
    "original, expected",
    [
        ("Hello", "Re: Hello"),
        ("Re: Hello", "Re: Hello"),
        ("RE: Hello", "RE: Hello"),
        ("re:Hello", "re:Hello"),
        ("", "Re:"),
        (None, "Re:"),
    ],
)
def test_reply_subject(original, expected):
    assert reply_subject(original) == expected


def test_chain_references_appends_message_id():
    assert chain_references("A B", "C") == "A B C"
    assert chain_references(None, "C") == "C"
    assert chain_references("A B", None) == "A B"
    assert chain_references(None, None) is None


def test_compose_reply_prefers_reply_to():
    headers = compose_reply(
        _payload(From="alice@example.com", Reply_To="list@example.com", Subject="Plans"),
        "Sounds good",
    )
    assert headers.to == "list@example.com"
    assert headers.subject == "Re: Plans"
    assert headers.body == "Sounds good"


def test_compose_reply_threads_on_message_id():
    headers = compose_reply(
        _payload(From="alice@example.com", Subject="Re: Plans", Message_ID="<c@x>", References="<a@x> <b@x>"),
        "ok",
    )
    assert headers.to == "alice@example.com"
    assert headers.subject == "Re: Plans"
    assert headers.in_reply_to == "<c@x>"
    assert headers.references == "<a@x> <b@x> <c@x>"


def test_compose_reply_without_message_id():
    headers = compose_reply(_payload(From="alice@example.com"), "ok")
    assert headers.in_reply_to is None
    assert headers.references is None


def test_compose_reply_requires_a_recipient():
    with pytest.raises(ArgumentError, match="Could not determine reply recipient"):
        compose_reply(_payload(Subject="Hi"), "ok")


def test_build_reply_mime_orders_threading_headers():
    mime = build_reply_mime(
        ReplyHeaders(to="a@x", subject="Re: Hi", body="Thanks\nBye", in_reply_to="<c@x>", references="<b@x> <c@x>")
    )
    assert mime.split("\r\n") == [
        "To: a@x",
        "Content-Type: text/plain; charset=utf-8",
        "MIME-Version: 1.0",
        "Subject: Re: Hi",
        "In-Reply-To: <c@x>",
        "References: <b@x> <c@x>",
        "",
        "Thanks\nBye",
    ]


def test_build_reply_mime_omits_absent_headers():
    mime = build_reply_mime(ReplyHeaders(to="a@x", subject="Re: Hi", body="b"))
    assert "In-Reply-To" not in mime
    assert "References" not in mime
