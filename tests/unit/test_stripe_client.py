import pytest
from types import SimpleNamespace

import stripe

from storefront.errors import RemoteRejected, RemoteUnavailable
from storefront.payments import stripe_client


@pytest.mark.asyncio
async def test_verification_skipped_without_key():
    assert await stripe_client.verify_payment_intent("pi_1") is None

@pytest.mark.asyncio
async def test_succeeded_intent(monkeypatch):
    monkeypatch.setattr(stripe_client, "STRIPE_SECRET_KEY", "sk_test_x")
    monkeypatch.setattr(stripe_client, "get_payment_intent", lambda ref: SimpleNamespace(id=ref, status="succeeded"))
    assert await stripe_client.verify_payment_intent("pi_1") == "succeeded"

@pytest.mark.asyncio
async def test_unpaid_intent_rejected(monkeypatch):
    monkeypatch.setattr(stripe_client, "STRIPE_SECRET_KEY", "sk_test_x")
    monkeypatch.setattr(stripe_client, "get_payment_intent", lambda ref: {"id": ref, "status": "processing"})
    with pytest.raises(RemoteRejected):
        await stripe_client.verify_payment_intent("pi_1")

@pytest.mark.asyncio
async def test_stripe_outage_is_unavailable(monkeypatch):
    def boom(ref):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe_client, "STRIPE_SECRET_KEY", "sk_test_x")
    monkeypatch.setattr(stripe_client, "get_payment_intent", boom)
    with pytest.raises(RemoteUnavailable):
        await stripe_client.verify_payment_intent("pi_1")

def test_require_stripe_sets_api_key(monkeypatch):
    monkeypatch.setattr(stripe_client, "STRIPE_SECRET_KEY", "sk_test_y")
    monkeypatch.setattr(stripe, "api_key", None)
    assert stripe_client.require_stripe() is stripe
    assert stripe.api_key == "sk_test_y"
