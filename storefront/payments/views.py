import logging

from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import JSONResponse

from storefront.payments import stripe_client
from storefront.payments import service as payments_service
from storefront.sessions.registry import get_materializer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

# module storefront.payments.views
@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe: consomme payment_intent.succeeded pour matérialiser commande ou rendez-vous.
    - Signature: stripe_client.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET)
    - Idempotence: matérialiseur partagé avec les confirmations du front
    - Réponses: {"status": "ok", ...} ou {"status": "ignored"}; 400 si signature/payload invalide
    """
    try:
        event = await stripe_client.parse_event(request)
    except Exception:
        logger.exception("Erreur webhook_stripe")
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")
    result = await payments_service.handle_webhook_event(event, get_materializer(request))
    return JSONResponse(result)
