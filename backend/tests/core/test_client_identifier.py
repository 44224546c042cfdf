"""Client Identifier: which address the abuse limiters count against.

Invariants:
    - X-Forwarded-For is ignored unless proxy trust is switched on
    - With trust on, the first (client-most) entry wins
    - An empty forwarded header falls back to the socket peer
"""

from starlette.requests import Request

from relay.api.rate_limit import client_identifier


def req(forwarded: str | None, peer: tuple[str, int] | None = ("10.0.0.9", 5000)) -> Request:
    headers = []
    if forwarded is not None:
        headers.append((b"x-forwarded-for", forwarded.encode()))
    return Request({"type": "http", "headers": headers, "client": peer})


def test_forwarded_header_ignored_without_proxy_trust():
    assert client_identifier(req("1.2.3.4, 5.6.7.8"), False) == "10.0.0.9"


def test_first_forwarded_entry_used_with_proxy_trust():
    assert client_identifier(req("1.2.3.4, 5.6.7.8"), True) == "1.2.3.4"


def test_empty_forwarded_header_falls_back_to_peer():
    assert client_identifier(req(""), True) == "10.0.0.9"
    assert client_identifier(req(None), True) == "10.0.0.9"


def test_missing_peer_is_unknown():
    assert client_identifier(req(None, peer=None), False) == "unknown"
