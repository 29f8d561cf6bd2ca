import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.app_setup.exceptions import ensure_success
from storefront.errors import OperationResult
from storefront.sessions.dependencies import current_session
from storefront.sessions.registry import StorefrontSession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])


class AddItemBody(BaseModel):
    product: Dict[str, Any]
    quantity: int = 1


class QuantityBody(BaseModel):
    quantity: int


class CouponBody(BaseModel):
    code: str = ""


def _with_cart(result: OperationResult, session: StorefrontSession) -> Dict[str, Any]:
    body = ensure_success(result)
    body["cart"] = session.cart.snapshot()
    return body

# module storefront.cart.views
@router.get("")
async def get_cart(session: StorefrontSession = Depends(current_session)):
    """Panier courant + décomposition du prix (sous-total, remise, TVA, livraison, total)."""
    return {"success": True, "cart": session.cart.snapshot()}

@router.post("/reload")
async def reload_cart(session: StorefrontSession = Depends(current_session)):
    result = await session.cart.load_for_user(session.cart.user_key)
    return _with_cart(result, session)

@router.post("/items")
async def add_item(body: AddItemBody, session: StorefrontSession = Depends(current_session)):
    """
    Ajoute un produit au panier distant.
    - Entrée JSON: {"product": {id, name, image, priceUSD|price, priceBDT?}, "quantity": 1}
    """
    result = await session.cart.add_item(body.product, body.quantity)
    return _with_cart(result, session)

@router.patch("/items/{item_id}")
async def set_quantity(item_id: str, body: QuantityBody, session: StorefrontSession = Depends(current_session)):
    """Quantité < 1: ignorée (aucun appel distant), le panier est renvoyé tel quel."""
    result: Optional[OperationResult] = await session.cart.set_quantity(item_id, body.quantity)
    if result is None:
        return {"success": True, "message": None, "ignored": True, "cart": session.cart.snapshot()}
    return _with_cart(result, session)

@router.delete("/items/{item_id}")
async def remove_item(item_id: str, session: StorefrontSession = Depends(current_session)):
    result = await session.cart.remove_item(item_id)
    return _with_cart(result, session)

@router.delete("")
async def clear_cart(session: StorefrontSession = Depends(current_session)):
    result = await session.cart.clear()
    return _with_cart(result, session)

@router.post("/coupon")
async def apply_coupon(body: CouponBody, session: StorefrontSession = Depends(current_session)):
    result = await session.cart.apply_coupon(body.code)
    return _with_cart(result, session)

@router.delete("/coupon")
async def clear_coupon(session: StorefrontSession = Depends(current_session)):
    session.cart.clear_coupon()
    return {"success": True, "cart": session.cart.snapshot()}
