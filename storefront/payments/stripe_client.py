"""
Adaptateur Stripe: vérification des PaymentIntent et validation des webhooks signés.
"""
import json
from typing import Any, Dict, Optional
import logging

import stripe
from fastapi import Request
from starlette.concurrency import run_in_threadpool

from storefront.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from storefront.errors import RemoteRejected, RemoteUnavailable

logger = logging.getLogger(__name__)

# module storefront.payments.stripe_client
def require_stripe() -> stripe:
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    """
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def is_configured() -> bool:
    return bool(STRIPE_SECRET_KEY)

def get_payment_intent(reference: str) -> Any:
    """Récupère un PaymentIntent (appel bloquant du SDK)."""
    require_stripe()
    return stripe.PaymentIntent.retrieve(reference)

def _status_of(intent: Any) -> Optional[str]:
    if isinstance(intent, dict):
        return intent.get("status")
    return getattr(intent, "status", None)

async def verify_payment_intent(reference: str) -> Optional[str]:
    """
    Vérifie auprès de Stripe que le paiement a abouti.
    - Sans STRIPE_SECRET_KEY: pas de vérification (None), le serveur distant fait foi.
    - status != 'succeeded' -> RemoteRejected; erreur SDK/réseau -> RemoteUnavailable.
    """
    if not is_configured():
        return None
    try:
        intent = await run_in_threadpool(get_payment_intent, reference)
    except stripe.InvalidRequestError as e:
        raise RemoteRejected(f"Unknown payment reference: {reference}") from e
    except stripe.StripeError as e:
        logger.warning("payments.stripe verify failed reference=%s err=%s", reference, e)
        raise RemoteUnavailable(str(e) or "Stripe unavailable") from e
    status = _status_of(intent)
    if status != "succeeded":
        raise RemoteRejected(f"Payment not completed (status={status})")
    return status

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature via Webhook.construct_event (STRIPE_WEBHOOK_SECRET)
    Retour: l'événement décodé (dict JSON).
    """
    require_stripe()
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature") or ""
    stripe.Webhook.construct_event(payload, sig_header, STRIPE_WEBHOOK_SECRET or "")
    return json.loads(payload)
