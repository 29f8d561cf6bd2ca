import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from storefront.app_setup.exceptions import ensure_success
from storefront.sessions.dependencies import current_session
from storefront.sessions.registry import StorefrontSession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])


class PaymentFailedBody(BaseModel):
    message: Optional[str] = None


class ConfirmBody(BaseModel):
    payment_intent_id: str

# module storefront.checkout.views
@router.get("")
async def checkout_state(session: StorefrontSession = Depends(current_session)):
    return {
        "success": True,
        "session": session.checkout.state(),
        "pricing": session.cart.breakdown().model_dump(mode="json"),
    }

@router.post("/begin")
async def begin_checkout(session: StorefrontSession = Depends(current_session)):
    """Entrée dans le checkout: refusée (422) si le panier est vide."""
    return ensure_success(session.checkout.begin())

@router.post("/billing")
async def submit_billing(form: Dict[str, Any] = Body(...), session: StorefrontSession = Depends(current_session)):
    """
    Soumet le formulaire de facturation.
    - Entrée JSON: {fullName, email, phone, country, address, city, zip}
    - 422 + field_errors si invalide (aucun appel distant); sinon {client_secret} pour le widget de paiement.
    """
    return ensure_success(await session.checkout.submit(form))

@router.post("/cancel")
async def cancel_payment(session: StorefrontSession = Depends(current_session)):
    return ensure_success(session.checkout.cancel())

@router.post("/payment-failed")
async def payment_failed(body: PaymentFailedBody, session: StorefrontSession = Depends(current_session)):
    """Le widget signale un échec: on reste en attente de paiement avec le message."""
    return ensure_success(session.checkout.payment_failed(body.message))

@router.post("/confirm")
async def confirm_payment(body: ConfirmBody, session: StorefrontSession = Depends(current_session)):
    """Paiement confirmé par le widget: matérialise la commande (une seule fois par référence)."""
    result = await session.checkout.confirm_payment(body.payment_intent_id)
    logger.info("checkout.confirm user=%s reference=%s success=%s", session.user.get("id"), body.payment_intent_id, result.success)
    return ensure_success(result)

@router.delete("")
async def abandon_checkout(session: StorefrontSession = Depends(current_session)):
    session.checkout.abandon()
    return {"success": True}
