import pytest
import requests

from supplyhub.client.api_client import ApiClientError, MarketplaceClient


class FakeResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    """Replays queued responses (or raises queued exceptions) and records calls."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_client(*replies, token="tok"):
    session = FakeSession(*replies)
    return MarketplaceClient("http://api.local/", token=token, session=session, backoff=0), session


def test_bearer_header_and_unwrapping():
    client, session = make_client(FakeResponse(200, {"ok": True, "items": [{"id": "1"}]}))
    assert client.available_deliveries() == [{"id": "1"}]
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "http://api.local/api/agent/available-deliveries")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


def test_token_callable_is_read_per_request():
    tokens = iter(["t1", "t2"])
    client, session = make_client(FakeResponse(200, {"user": {}}), FakeResponse(200, {"user": {}}),
                                  token=lambda: next(tokens))
    client.me()
    client.me()
    assert [c[2]["headers"]["Authorization"] for c in session.calls] == ["Bearer t1", "Bearer t2"]


def test_tracking_sends_no_credentials():
    client, session = make_client(FakeResponse(200, {"ok": True, "tracking": {"status": "available"}}))
    assert client.tracking("abc")["status"] == "available"
    assert "Authorization" not in session.calls[0][2]["headers"]


def test_retries_gateway_errors_then_succeeds():
    client, session = make_client(
        FakeResponse(503, text="<html>busy</html>"),
        requests.ConnectionError("reset"),
        FakeResponse(200, {"ok": True, "order": {"id": "o1"}}),
    )
    assert client.place_order({"distributorId": "d", "items": []}) == {"id": "o1"}
    assert len(session.calls) == 3


def test_gives_up_after_max_retries():
    client, session = make_client(*[requests.Timeout("slow")] * 3)
    with pytest.raises(ApiClientError) as exc:
        client.vendor_orders()
    assert exc.value.status is None
    assert len(session.calls) == 3


def test_client_errors_are_not_retried():
    client, session = make_client(FakeResponse(409, {"ok": False, "message": "Delivery has already been claimed"}))
    with pytest.raises(ApiClientError) as exc:
        client.accept_delivery("a1")
    assert exc.value.status == 409
    assert exc.value.message == "Delivery has already been claimed"
    assert len(session.calls) == 1


def test_needs_registration_flag():
    client, _ = make_client(FakeResponse(404, {"ok": False, "message": "User not found", "needsRegistration": True}))
    with pytest.raises(ApiClientError) as exc:
        client.login()
    assert exc.value.needs_registration


def test_non_json_success_is_an_error():
    client, _ = make_client(FakeResponse(200, None, text="<html>proxy</html>"))
    with pytest.raises(ApiClientError, match="Non-JSON"):
        client.profile()


def test_browse_drops_empty_filters():
    client, session = make_client(FakeResponse(200, {"items": []}))
    client.browse_products("d1", category="Grains", q=None)
    method, url, kwargs = session.calls[0]
    assert url.endswith("/api/vendor/products/d1")
    assert kwargs["params"] == {"category": "Grains"}


def test_against_live_app(client, vendor, distributor, make_product):
    """The client speaks the same paths and shapes as the server."""
    make_product()
    http = MarketplaceClient("", token=vendor.headers["Authorization"].split(" ", 1)[1],
                             session=_TestClientSession(client), backoff=0)
    products = http.browse_products(distributor.id)
    assert len(products) == 1
    order = http.place_order({"distributorId": distributor.id,
                              "items": [{"productId": products[0]["id"], "quantity": 2}]})
    assert order["totalAmount"] == "21.00"
    assert [o["id"] for o in http.vendor_orders()] == [order["id"]]
    with pytest.raises(ApiClientError) as exc:
        http.tracking("000000000000000000000000")
    assert exc.value.status == 404


class _TestClientSession:
    def __init__(self, client):
        self.client = client

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        return self.client.request(method, url, json=json, params=params, headers=headers)
