from starlette.requests import Request

from routers.rate_limit import _client_identifier


def _request(client, headers=None):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/views",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_client_address_wins_over_forwarded_header():
    request = _request(("10.0.0.7", 5123), {"X-Forwarded-For": "203.0.113.9"})
    assert _client_identifier(request) == "10.0.0.7"


def test_forwarded_header_used_without_client_address():
    request = _request(None, {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
    assert _client_identifier(request) == "203.0.113.9"


def test_unknown_when_nothing_identifies_the_client():
    assert _client_identifier(_request(None)) == "unknown"
