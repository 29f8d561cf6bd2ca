import pytest
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple
from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app
from storefront.utils.security import require_user

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


FAKE_USER: Dict[str, Any] = {
    "id": "test-user",
    "email": "test@example.com",
    "role": "user",
}


class FakeApi:
    """
    Remplace le client de l'API distante: enregistre les appels et renvoie
    des réponses programmées par (méthode, chemin).
    - route(method, path, payload | exception | callable(json))
    """

    def __init__(self):
        self.calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []
        self._routes: Dict[Tuple[str, str], Any] = {}

    def route(self, method: str, path: str, response: Any) -> None:
        self._routes[(method.upper(), path)] = response

    def paths(self, method: Optional[str] = None) -> List[str]:
        return [p for m, p, _ in self.calls if method is None or m == method.upper()]

    async def request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self.calls.append((method.upper(), path, json))
        response = self._routes.get((method.upper(), path))
        if response is None:
            raise AssertionError(f"appel inattendu: {method} {path}")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(json)
            if isinstance(response, Exception):
                raise response
        return response

    async def get(self, path: str) -> Dict[str, Any]:
        return await self.request("GET", path)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("DELETE", path, json=json)

    async def aclose(self) -> None:
        return None


@pytest.fixture
def fake_api(monkeypatch) -> FakeApi:
    api = FakeApi()
    monkeypatch.setattr("storefront.infra.api_client.get_api_client", lambda: api)
    return api


def remote_line(item_id: str, price_bdt: Any, quantity: int, product_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "_id": item_id,
        "productId": product_id or f"p-{item_id}",
        "productName": f"Produit {item_id}",
        "productImage": None,
        "priceBDT": price_bdt,
        "priceUSD": None,
        "quantity": quantity,
    }


@pytest.fixture
def remote_line_factory() -> Callable[..., Dict[str, Any]]:
    return remote_line


@pytest.fixture
def app():
    return create_app()


# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture
def client(app, fake_api) -> Generator[TestClient, None, None]:
    app.dependency_overrides[require_user] = lambda: dict(FAKE_USER)
    # get_api_client est déjà remplacé par fake_api: le client HTTP du lifespan n'est jamais utilisé
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# Stripe non configuré par défaut: les références de paiement ne sont pas vérifiées
@pytest.fixture(autouse=True)
def _no_stripe_key(monkeypatch):
    monkeypatch.setattr("storefront.payments.stripe_client.STRIPE_SECRET_KEY", "")
