"""
Accès distant du checkout produit: création de l'intent de paiement et vérification (matérialisation de la commande).
"""
from typing import Any, Dict
import logging

import storefront.infra.api_client as api_client
from storefront.errors import RemoteRejected

logger = logging.getLogger(__name__)

SESSION_NOT_INITIALIZED = "Payment session not initialized. Please try again."

# module storefront.checkout.repository
async def create_order_payment_intent(payload: Dict[str, Any]) -> str:
    """
    POST /payment/create-payment-intent -> clientSecret.
    - payload: {items, totalBDT, couponCode, billingDetails}
    - Un clientSecret absent est traité comme un refus.
    """
    data = await api_client.get_api_client().post("/payment/create-payment-intent", json=payload)
    token = data.get("clientSecret")
    if not token:
        logger.warning("checkout.repository.create_order_payment_intent missing clientSecret")
        raise RemoteRejected(SESSION_NOT_INITIALIZED, payload=data)
    return str(token)

async def verify_order_payment(reference: str, user_id: str) -> Dict[str, Any]:
    """POST /payment/verify-payment: le serveur crée la commande (idempotent par paymentIntentId)."""
    data = await api_client.get_api_client().post(
        "/payment/verify-payment",
        json={"paymentIntentId": reference, "userId": user_id},
    )
    return {"order": data.get("order") or {}, "paymentReference": reference}
