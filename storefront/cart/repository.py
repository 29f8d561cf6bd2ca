"""
Accès à l'API panier distante.
Chaque mutation renvoie la liste complète des lignes (le serveur fait foi).
"""
from typing import Any, Dict, List, Optional, Tuple
import logging
from urllib.parse import quote

import storefront.infra.api_client as api_client

logger = logging.getLogger(__name__)

# (items bruts, version serveur éventuelle)
CartSnapshot = Tuple[List[Dict[str, Any]], Optional[int]]


def _snapshot(payload: Dict[str, Any]) -> CartSnapshot:
    cart = payload.get("cart") if isinstance(payload.get("cart"), dict) else payload
    items = cart.get("items") or []
    version = cart.get("version", payload.get("version"))
    try:
        version = int(version) if version is not None else None
    except (TypeError, ValueError):
        version = None
    return list(items), version

# module storefront.cart.repository
async def fetch_cart(user_key: str) -> CartSnapshot:
    """GET /cart/{user_key}"""
    payload = await api_client.get_api_client().get(f"/cart/{quote(user_key, safe='@')}")
    return _snapshot(payload)

async def add_item(user_key: str, item: Dict[str, Any]) -> CartSnapshot:
    """POST /cart/add: item = {productId, productName, productImage, priceUSD, priceBDT, quantity}"""
    payload = await api_client.get_api_client().post("/cart/add", json={"userId": user_key, **item})
    return _snapshot(payload)

async def update_quantity(user_key: str, item_id: str, quantity: int) -> CartSnapshot:
    """PATCH /cart/update/{item_id}"""
    payload = await api_client.get_api_client().patch(
        f"/cart/update/{quote(item_id)}", json={"userId": user_key, "quantity": quantity}
    )
    return _snapshot(payload)

async def remove_item(user_key: str, item_id: str) -> CartSnapshot:
    """DELETE /cart/remove/{item_id}"""
    payload = await api_client.get_api_client().delete(f"/cart/remove/{quote(item_id)}", json={"userId": user_key})
    return _snapshot(payload)

async def clear_cart(user_key: str) -> Dict[str, Any]:
    """DELETE /cart/clear: seul l'acquittement compte, pas la forme du payload."""
    return await api_client.get_api_client().delete("/cart/clear", json={"userId": user_key})
