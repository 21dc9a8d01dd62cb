import asyncio
import json

import httpx
import pytest

from shop_orders.infrastructure.http_clients import HTTPAuthClient, HTTPOrdersClient, OrdersAPIError
from shop_orders.domain.exceptions import UnauthenticatedError, AuthServiceError


def auth_client(handler):
    return HTTPAuthClient("https://auth.example.com/", "anon-key", transport=httpx.MockTransport(handler))


def test_auth_client_resolves_caller():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["authorization"] = request.headers["Authorization"]
        seen["apikey"] = request.headers["apikey"]
        return httpx.Response(200, json={"id": "U1", "email": "u1@example.com"})

    caller = asyncio.run(auth_client(handler).get_caller("Bearer token-1"))

    assert caller.id == "U1"
    assert caller.email == "u1@example.com"
    assert seen == {
        "url": "https://auth.example.com/auth/v1/user",
        "authorization": "Bearer token-1",
        "apikey": "anon-key",
    }


@pytest.mark.parametrize("authorization", [None, "", "Basic abc"])
def test_auth_client_requires_bearer(authorization):
    def handler(request):
        raise AssertionError("не должно быть запроса")

    with pytest.raises(UnauthenticatedError):
        asyncio.run(auth_client(handler).get_caller(authorization))


@pytest.mark.parametrize("status_code", [401, 403])
def test_auth_client_rejected_token(status_code):
    client = auth_client(lambda request: httpx.Response(status_code, json={"msg": "invalid JWT"}))

    with pytest.raises(UnauthenticatedError):
        asyncio.run(client.get_caller("Bearer expired"))


def test_auth_client_user_without_id():
    client = auth_client(lambda request: httpx.Response(200, json={}))

    with pytest.raises(UnauthenticatedError):
        asyncio.run(client.get_caller("Bearer token"))


def test_auth_client_upstream_failure():
    client = auth_client(lambda request: httpx.Response(502))

    with pytest.raises(AuthServiceError):
        asyncio.run(client.get_caller("Bearer token"))


def test_auth_client_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AuthServiceError):
        asyncio.run(auth_client(handler).get_caller("Bearer token"))


def test_orders_client_updates_status_through_endpoint():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(200, json={"success": True})

    client = HTTPOrdersClient("https://shop.example.com", "token-1", transport=httpx.MockTransport(handler))

    assert asyncio.run(client.update_order_status("O1", "cancelled")) is True
    assert len(requests) == 1
    assert requests[0].method == "POST"
    assert requests[0].url.path == "/api/orders/update-status"
    assert requests[0].headers["Authorization"] == "Bearer token-1"
    assert json.loads(requests[0].read()) == {"orderId": "O1", "newStatus": "cancelled"}


def test_orders_client_has_no_direct_write_fallback():
    requests = []

    def handler(request: httpx.Request):
        requests.append(request)
        return httpx.Response(403, json={"error": "NOT_ALLOWED_FOR_USER"})

    client = HTTPOrdersClient("https://shop.example.com", "token-1", transport=httpx.MockTransport(handler))

    with pytest.raises(OrdersAPIError) as exc_info:
        asyncio.run(client.update_order_status("O2", "cancelled"))

    assert exc_info.value.error == "NOT_ALLOWED_FOR_USER"
    assert exc_info.value.status_code == 403
    assert len(requests) == 1


def test_orders_client_fetches_orders():
    def handler(request: httpx.Request):
        assert request.url.path == "/api/orders"
        return httpx.Response(200, json=[{"id": "O1"}])

    client = HTTPOrdersClient("https://shop.example.com/", "token-1", transport=httpx.MockTransport(handler))

    assert asyncio.run(client.fetch_orders()) == [{"id": "O1"}]


def test_orders_client_fetches_single_order():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["authorization"] = request.headers["Authorization"]
        return httpx.Response(200, json={"id": "O1", "status": "pending"})

    client = HTTPOrdersClient("https://shop.example.com/", "token-1", transport=httpx.MockTransport(handler))

    assert asyncio.run(client.fetch_order("O1")) == {"id": "O1", "status": "pending"}
    assert seen == {"method": "GET", "path": "/api/orders/O1", "authorization": "Bearer token-1"}


def test_orders_client_fetch_order_not_found():
    client = HTTPOrdersClient(
        "https://shop.example.com",
        "token-1",
        transport=httpx.MockTransport(lambda request: httpx.Response(404, json={"error": "ORDER_NOT_FOUND"}))
    )

    with pytest.raises(OrdersAPIError) as exc_info:
        asyncio.run(client.fetch_order("missing"))

    assert exc_info.value.error == "ORDER_NOT_FOUND"
    assert exc_info.value.status_code == 404
