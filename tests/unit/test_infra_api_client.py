import json

import httpx
import pytest

from storefront.errors import RemoteRejected, RemoteUnavailable
from storefront.infra.api_client import RemoteApiClient


def _client(handler):
    return RemoteApiClient("http://remote.test", timeout=1, transport=httpx.MockTransport(handler))

@pytest.mark.asyncio
async def test_returns_json_payload():
    def handler(request):
        assert request.url.path == "/cart/add"
        assert json.loads(request.content) == {"userId": "u"}
        return httpx.Response(200, json={"success": True, "cart": {"items": []}})

    payload = await _client(handler).post("/cart/add", json={"userId": "u"})
    assert payload["success"] is True

@pytest.mark.asyncio
async def test_delete_sends_body():
    def handler(request):
        assert request.method == "DELETE"
        return httpx.Response(200, json={"received": json.loads(request.content)})

    payload = await _client(handler).delete("/cart/clear", json={"userId": "u"})
    assert payload["received"] == {"userId": "u"}

@pytest.mark.asyncio
async def test_http_error_is_rejection_with_server_message():
    def handler(request):
        return httpx.Response(409, json={"success": False, "conflict": True, "message": "Slot taken"})

    with pytest.raises(RemoteRejected) as exc_info:
        await _client(handler).post("/appointment/create-payment-intent", json={})
    assert exc_info.value.status_code == 409
    assert exc_info.value.message == "Slot taken"
    assert exc_info.value.payload["conflict"] is True

@pytest.mark.asyncio
async def test_success_false_is_rejection():
    def handler(request):
        return httpx.Response(200, json={"success": False, "message": "Invalid coupon"})

    with pytest.raises(RemoteRejected) as exc_info:
        await _client(handler).post("/coupon/apply", json={})
    assert exc_info.value.message == "Invalid coupon"

@pytest.mark.asyncio
async def test_timeout_is_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(RemoteUnavailable):
        await _client(handler).get("/cart/u")

@pytest.mark.asyncio
async def test_connection_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(RemoteUnavailable):
        await _client(handler).get("/api/doctors")

@pytest.mark.asyncio
async def test_non_json_error_body_uses_status():
    def handler(request):
        return httpx.Response(500, text="oops")

    with pytest.raises(RemoteRejected) as exc_info:
        await _client(handler).get("/cart/u")
    assert exc_info.value.message == "HTTP 500"
