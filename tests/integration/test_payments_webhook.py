BILLING = {
    "fullName": "Rahim Uddin",
    "email": "rahim@example.com",
    "phone": "01711000000",
    "address": "12 Road",
    "city": "Dhaka",
    "zip": "1207",
}


def _fake_parse(event):
    async def _parse(request):
        return event
    return _parse

def test_webhook_materializes_order(client, fake_api, monkeypatch):
    fake_api.route("POST", "/payment/verify-payment", {"success": True, "order": {}})
    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_w", "metadata": {"user_id": "u1"}}}}
    monkeypatch.setattr("storefront.payments.stripe_client.parse_event", _fake_parse(event))
    r = client.post("/api/v1/payments/webhook", content=b"{}")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

def test_webhook_ignores_other_events(client, fake_api, monkeypatch):
    monkeypatch.setattr("storefront.payments.stripe_client.parse_event", _fake_parse({"type": "charge.succeeded"}))
    r = client.post("/api/v1/payments/webhook", content=b"{}")
    assert r.json() == {"status": "ignored"}

def test_invalid_signature_is_400(client):
    r = client.post("/api/v1/payments/webhook", content=b"{}", headers={"stripe-signature": "bad"})
    assert r.status_code == 400

def test_webhook_and_front_confirmation_share_idempotency(client, fake_api, monkeypatch, remote_line_factory):
    fake_api.route("GET", "/cart/test@example.com", {"items": [remote_line_factory("l1", 500, 1)]})
    fake_api.route("POST", "/payment/create-payment-intent", {"clientSecret": "s"})
    fake_api.route("POST", "/payment/verify-payment", {"success": True, "order": {"orderId": "ORD-W"}})
    fake_api.route("DELETE", "/cart/clear", {"success": True})
    client.post("/api/v1/checkout/billing", json=BILLING)

    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_s", "metadata": {"user_id": "test-user"}}}}
    monkeypatch.setattr("storefront.payments.stripe_client.parse_event", _fake_parse(event))
    assert client.post("/api/v1/payments/webhook", content=b"{}").status_code == 200

    r = client.post("/api/v1/checkout/confirm", json={"payment_intent_id": "pi_s"})
    assert r.status_code == 200
    assert r.json()["data"]["order"]["orderId"] == "ORD-W"
    assert fake_api.paths("POST").count("/payment/verify-payment") == 1
