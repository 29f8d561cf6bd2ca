import pytest

from storefront.appointments.models import Doctor
from storefront.errors import RemoteUnavailable
from storefront.sessions.registry import SessionRegistry

USER = {"id": "u1", "email": "buyer@example.com"}


@pytest.mark.asyncio
async def test_open_loads_cart_once(fake_api, remote_line_factory):
    fake_api.route("GET", "/cart/buyer@example.com", {"items": [remote_line_factory("l1", 100, 1)]})
    registry = SessionRegistry()
    first = await registry.open(USER)
    second = await registry.open(USER)
    assert first is second
    assert first.cart.item_count == 1
    assert fake_api.paths("GET") == ["/cart/buyer@example.com"]

@pytest.mark.asyncio
async def test_open_with_unreachable_cart_gives_empty_cart(fake_api):
    fake_api.route("GET", "/cart/buyer@example.com", RemoteUnavailable("down"))
    session = await SessionRegistry().open(USER)
    assert session.cart.is_empty

@pytest.mark.asyncio
async def test_close_resets_cart_and_checkouts(fake_api, remote_line_factory):
    fake_api.route("GET", "/cart/buyer@example.com", {"items": [remote_line_factory("l1", 100, 1)]})
    registry = SessionRegistry()
    session = await registry.open(USER)
    session.checkout.begin()
    assert registry.close("u1")
    assert session.cart.is_empty and session.cart.user_key is None
    assert session.checkout.session is None
    assert len(registry) == 0
    assert not registry.close("u1")

@pytest.mark.asyncio
async def test_bookings_share_the_app_materializer(fake_api):
    fake_api.route("GET", "/cart/buyer@example.com", {"items": []})
    registry = SessionRegistry()
    session = await registry.open(USER)
    doctor = Doctor(id="d1", email="vet@example.com")
    booking = session.booking_for(doctor)
    assert booking.materializer is registry.materializer
    assert session.checkout.materializer is registry.materializer
    assert session.booking("vet@example.com") is booking

@pytest.mark.asyncio
async def test_idle_sessions_are_closed_on_next_open(fake_api, remote_line_factory):
    fake_api.route("GET", "/cart/buyer@example.com", {"items": [remote_line_factory("l1", 100, 1)]})
    fake_api.route("GET", "/cart/other@example.com", {"items": []})
    now = [1000.0]
    registry = SessionRegistry(idle_timeout=60, clock=lambda: now[0])
    idle = await registry.open(USER)
    idle.checkout.begin()
    assert idle.checkout.session is not None

    now[0] += 61
    await registry.open({"id": "u2", "email": "other@example.com"})
    assert len(registry) == 1
    assert idle.checkout.session is None

    again = await registry.open(USER)
    assert again is not idle
    assert fake_api.paths("GET").count("/cart/buyer@example.com") == 2

@pytest.mark.asyncio
async def test_activity_keeps_session_alive(fake_api):
    fake_api.route("GET", "/cart/buyer@example.com", {"items": []})
    now = [0.0]
    registry = SessionRegistry(idle_timeout=60, clock=lambda: now[0])
    first = await registry.open(USER)
    for _ in range(3):
        now[0] += 45
        assert await registry.open(USER) is first
    assert registry.expire_idle() == []
