def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}

def test_logout_closes_session(client, fake_api, remote_line_factory):
    fake_api.route("GET", "/cart/test@example.com", {"items": [remote_line_factory("l1", 100, 1)]})
    client.get("/api/v1/cart")
    health = client.get("/health/sessions").json()
    assert health["sessions"] == 1
    assert health["pending_payment_locks"] == 0

    r = client.post("/api/v1/session/logout")
    assert r.status_code == 200
    assert r.json()["closed"] is True
    assert client.get("/health/sessions").json()["sessions"] == 0

    # reconnexion: le panier est rechargé depuis le serveur
    client.get("/api/v1/cart")
    assert fake_api.paths("GET").count("/cart/test@example.com") == 2

def test_api_responses_are_not_cached(client, fake_api):
    fake_api.route("GET", "/cart/test@example.com", {"items": []})
    r = client.get("/api/v1/cart")
    assert r.headers["cache-control"].startswith("no-store")
