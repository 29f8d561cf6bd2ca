"""
Module 'payments' (feature-first): point d'entrée public.
Réunit le matérialiseur idempotent, le client Stripe, les métadonnées et le webhook.
"""

from .materialization import PaymentMaterializer, MATERIALIZATION_FAILED_MESSAGE
from .metadata import extract_intent, intent_kind, metadata_user, appointment_data
from .stripe_client import require_stripe, is_configured, get_payment_intent, verify_payment_intent, parse_event
from .service import handle_webhook_event

__all__ = [
    # matérialisation
    "PaymentMaterializer",
    "MATERIALIZATION_FAILED_MESSAGE",
    # metadata
    "extract_intent",
    "intent_kind",
    "metadata_user",
    "appointment_data",
    # stripe
    "require_stripe",
    "is_configured",
    "get_payment_intent",
    "verify_payment_intent",
    "parse_event",
    # webhook
    "handle_webhook_event",
]
