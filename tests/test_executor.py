"""
Tests for the request executor, driven through httpx.MockTransport.
"""

import json

import httpx
import pytest

from storecheck.errors import TransportFailure
from storecheck.executor import RequestExecutor
from storecheck.models import HttpMethod, RequestDescriptor


@pytest.fixture
def recorder():
    """Build an executor whose transport records requests and answers with *reply*."""
    seen: list[httpx.Request] = []

    def _make(reply: httpx.Response | Exception) -> RequestExecutor:
        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if isinstance(reply, Exception):
                raise reply
            return reply

        client = httpx.Client(base_url="http://shop.test", transport=httpx.MockTransport(handler))
        return RequestExecutor(client=client)

    _make.seen = seen
    return _make


def test_bearer_header_attached(recorder):
    ex = recorder(httpx.Response(200, json=[]))
    ex.execute("GET", "/cart", auth_token="tok123")
    assert recorder.seen[0].headers["Authorization"] == "Bearer tok123"


def test_no_auth_header_without_token(recorder):
    ex = recorder(httpx.Response(401))
    ex.execute(HttpMethod.GET, "/cart")
    assert "Authorization" not in recorder.seen[0].headers


@pytest.mark.parametrize("method", ["POST", "PUT"])
def test_body_serialised_for_post_and_put(recorder, method):
    ex = recorder(httpx.Response(201, json={"id": 4}))
    ex.execute(method, "/products", {"name": "X", "price": 1.5})
    sent = recorder.seen[0]
    assert sent.method == method
    assert json.loads(sent.content) == {"name": "X", "price": 1.5}
    assert sent.headers["content-type"] == "application/json"


@pytest.mark.parametrize("method", ["GET", "DELETE"])
def test_body_dropped_for_get_and_delete(recorder, method):
    ex = recorder(httpx.Response(200, json={}))
    ex.execute(method, "/products/1", {"ignored": True})
    assert recorder.seen[0].content == b""


def test_request_goes_to_base_url(recorder):
    ex = recorder(httpx.Response(200, json=[]))
    ex.execute("GET", "/products")
    assert str(recorder.seen[0].url) == "http://shop.test/products"
    assert ex.base_url == "http://shop.test"


def test_json_body_parsed(recorder):
    ex = recorder(httpx.Response(200, json={"access_token": "abc"}, headers={"X-Trace": "1"}))
    resp = ex.execute("POST", "/login", {"username": "u", "password": "p"})
    assert resp.status_code == 200
    assert resp.body == {"access_token": "abc"}
    assert resp.headers["x-trace"] == "1"
    assert resp.method == HttpMethod.POST
    assert resp.path == "/login"
    assert resp.latency_ms >= 0


@pytest.mark.parametrize("status", [401, 404, 405])
def test_empty_error_body_does_not_raise(recorder, status):
    ex = recorder(httpx.Response(status))
    resp = ex.execute("DELETE", "/products/1")
    assert resp.status_code == status
    assert resp.body is None
    assert resp.text == ""


def test_non_json_body_kept_as_text(recorder):
    ex = recorder(httpx.Response(500, text="<html>Internal Server Error</html>"))
    resp = ex.execute("GET", "/products")
    assert resp.status_code == 500
    assert resp.body is None
    assert "Internal Server Error" in resp.text


def test_transport_error_surfaces(recorder):
    boom = httpx.ConnectError("connection refused")
    ex = recorder(boom)
    with pytest.raises(TransportFailure) as info:
        ex.execute("GET", "/products")
    assert info.value.__cause__ is boom
    assert info.value.method == "GET"
    assert info.value.url == "http://shop.test/products"
    assert "connection refused" in str(info.value)


def test_send_descriptor(recorder):
    ex = recorder(httpx.Response(201))
    resp = ex.send(RequestDescriptor(method="POST", path="/cart", body={"product_id": 1, "quantity": 2}, auth_token="t"))
    assert resp.status_code == 201
    assert recorder.seen[0].headers["Authorization"] == "Bearer t"
    assert json.loads(recorder.seen[0].content) == {"product_id": 1, "quantity": 2}


def test_injected_client_left_open(recorder):
    ex = recorder(httpx.Response(200))
    ex.close()
    assert not ex._client.is_closed


def test_owned_client_closed_on_exit():
    with RequestExecutor("http://127.0.0.1:1", timeout=1.0) as ex:
        client = ex._client
    assert client.is_closed


def _corrupt_gzip(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")


def test_undecodable_body_surfaces_as_transport_failure():
    client = httpx.Client(base_url="http://shop.test", transport=httpx.MockTransport(_corrupt_gzip))
    ex = RequestExecutor(client=client)
    with pytest.raises(TransportFailure) as info:
        ex.execute("GET", "/products")
    assert isinstance(info.value.__cause__, httpx.DecodingError)
    assert info.value.url == "http://shop.test/products"

