"""Tests for the backend client."""

from json import dumps
from typing import Any

import pytest
from requests import ConnectionError as RequestsConnectionError
from requests import Response

from remote import ApiBridge, TransportError


class FakeSession:
    """Records requests and answers them with a canned response or error."""

    def __init__(self, response: Response | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> Response:  # noqa: ANN401
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


def make_response(status: int, body: bytes) -> Response:
    """Build a response without any network traffic."""
    response = Response()
    response.status_code = status
    response._content = body  # noqa: SLF001
    response.url = "http://backend"
    return response


def make_bridge(session: FakeSession) -> ApiBridge:
    return ApiBridge(
        "http://backend/",
        headers={"Authorization": "Bearer token"},
        timeout=5,
        session=session,  # type: ignore[arg-type]
    )


@pytest.mark.parametrize(
    ("call", "method", "url", "payload"),
    [
        (lambda api: api.fetch_schema(), "GET", "http://backend/api/schema", None),
        (lambda api: api.save_schema({"a": 1}), "POST", "http://backend/api/sync", {"a": 1}),
        (
            lambda api: api.save_layout({"p": 2}),
            "POST",
            "http://backend/api/save-layout",
            {"p": 2},
        ),
        (lambda api: api.fetch_live_db("db-1"), "GET", "http://backend/api/live-db/db-1", None),
        (lambda api: api.fetch_databases(), "GET", "http://backend/api/databases", None),
    ],
)
def test_endpoints(call: Any, method: str, url: str, payload: Any) -> None:  # noqa: ANN401
    """Test that every call hits its endpoint and returns the parsed body."""
    session = FakeSession(make_response(200, dumps({"ok": True}).encode()))

    assert call(make_bridge(session)) == {"ok": True}

    [(sent_method, sent_url, kwargs)] = session.calls
    assert sent_method == method
    assert sent_url == url
    assert kwargs["json"] == payload
    assert kwargs["timeout"] == 5
    assert kwargs["headers"] == {
        "Content-Type": "application/json",
        "Authorization": "Bearer token",
    }


def test_http_error_raises_transport_error(caplog: pytest.LogCaptureFixture) -> None:
    """Test that error statuses are logged and raised."""
    session = FakeSession(make_response(500, b"{}"))

    with pytest.raises(TransportError, match="GET /api/schema failed"):
        make_bridge(session).fetch_schema()
    assert "http://backend/api/schema" in caplog.text


def test_connection_error_raises_transport_error() -> None:
    """Test that connection failures keep their cause."""
    error = RequestsConnectionError("refused")
    session = FakeSession(error=error)

    with pytest.raises(TransportError) as info:
        make_bridge(session).fetch_databases()
    assert info.value.__cause__ is error


def test_invalid_json_raises_transport_error() -> None:
    """Test that unreadable bodies are reported as transport failures."""
    session = FakeSession(make_response(200, b"<html>"))

    with pytest.raises(TransportError):
        make_bridge(session).fetch_live_db("x")


def test_relative_base_url() -> None:
    """Test that an empty base url yields root-relative paths."""
    assert ApiBridge(session=FakeSession()).url("/api/schema") == "/api/schema"  # type: ignore[arg-type]
