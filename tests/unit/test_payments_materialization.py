import asyncio

import pytest
from unittest.mock import AsyncMock

from storefront.errors import ErrorKind, RemoteRejected, RemoteUnavailable
from storefront.payments.materialization import PaymentMaterializer


@pytest.mark.asyncio
async def test_same_reference_submitted_once():
    materializer = PaymentMaterializer()
    submit = AsyncMock(return_value={"order": {"orderId": "ORD-1"}})
    first = await materializer.materialize("pi_1", submit)
    second = await materializer.materialize("pi_1", submit)
    assert first.success and second.success
    assert second.data == {"order": {"orderId": "ORD-1"}}
    submit.assert_awaited_once()

@pytest.mark.asyncio
async def test_concurrent_calls_are_serialized():
    materializer = PaymentMaterializer()
    calls = []

    async def submit():
        calls.append(1)
        await asyncio.sleep(0)
        return {"ok": True}

    results = await asyncio.gather(*(materializer.materialize("pi_c", submit) for _ in range(5)))
    assert all(r.success for r in results)
    assert len(calls) == 1

@pytest.mark.asyncio
async def test_failure_is_not_cached():
    materializer = PaymentMaterializer()
    failing = AsyncMock(side_effect=RemoteUnavailable("timeout"))
    result = await materializer.materialize("pi_f", failing, fallback="Please contact support.")
    assert result.error == ErrorKind.REMOTE_UNAVAILABLE
    assert result.message == "Please contact support."
    assert not materializer.is_materialized("pi_f")

    ok = AsyncMock(return_value={"order": {}})
    assert (await materializer.materialize("pi_f", ok)).success
    assert materializer.is_materialized("pi_f")

@pytest.mark.asyncio
async def test_stripe_verification_failure_blocks_submission(monkeypatch):
    async def not_paid(reference):
        raise RemoteRejected("Payment not completed (status=requires_payment_method)")

    monkeypatch.setattr("storefront.payments.stripe_client.verify_payment_intent", not_paid)
    materializer = PaymentMaterializer()
    submit = AsyncMock(return_value={})
    result = await materializer.materialize("pi_x", submit)
    assert not result.success
    assert "requires_payment_method" in result.message
    submit.assert_not_awaited()

@pytest.mark.asyncio
async def test_locks_are_released_after_use():
    materializer = PaymentMaterializer()
    release = asyncio.Event()

    async def slow():
        await release.wait()
        return {"ok": True}

    tasks = [asyncio.create_task(materializer.materialize("pi_l", slow)) for _ in range(3)]
    await asyncio.sleep(0)
    assert materializer.pending_locks() == 1
    release.set()
    await asyncio.gather(*tasks)
    assert materializer.pending_locks() == 0

    await materializer.materialize("pi_err", AsyncMock(side_effect=RemoteUnavailable("down")))
    assert materializer.pending_locks() == 0

@pytest.mark.asyncio
async def test_oldest_references_are_forgotten_beyond_capacity():
    materializer = PaymentMaterializer(max_entries=2)
    for ref in ("pi_a", "pi_b", "pi_c"):
        await materializer.materialize(ref, AsyncMock(return_value={"ref": ref}))
    assert len(materializer) == 2
    assert not materializer.is_materialized("pi_a")
    assert materializer.is_materialized("pi_b") and materializer.is_materialized("pi_c")
