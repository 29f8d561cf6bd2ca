"""
Confirmation des paiements par webhook Stripe (second chemin, même matérialiseur que le front).
"""
from typing import Any, Dict
import logging

from storefront.appointments import repository as appointments_repo
from storefront.checkout import repository as checkout_repo
from storefront.payments import metadata as payments_metadata
from storefront.payments.materialization import PaymentMaterializer

logger = logging.getLogger(__name__)

# module storefront.payments.service
async def handle_webhook_event(event: Dict[str, Any], materializer: PaymentMaterializer) -> Dict[str, Any]:
    """
    Consomme payment_intent.succeeded:
    - commande: POST /payment/verify-payment
    - rendez-vous: POST /appointment/verify-payment (données lues dans les métadonnées)
    Le matérialiseur garantit une seule soumission par référence; l'événement signé
    tient lieu de vérification Stripe.
    """
    if (event or {}).get("type") != "payment_intent.succeeded":
        return {"status": "ignored"}

    reference, meta = payments_metadata.extract_intent(event)
    if not reference:
        return {"status": "ignored"}
    user_id, user_email = payments_metadata.metadata_user(meta)
    kind = payments_metadata.intent_kind(meta)

    if kind == "appointment":
        data = payments_metadata.appointment_data(meta)
        submit = lambda: appointments_repo.verify_appointment_payment(reference, data, user_id, user_email)
    else:
        submit = lambda: checkout_repo.verify_order_payment(reference, user_id)

    result = await materializer.materialize(reference, submit, verify=False)
    logger.info("payments.webhook kind=%s reference=%s user_id=%s materialized=%s", kind, reference, user_id, result.success)
    return {"status": "ok" if result.success else "error", "kind": kind, "materialized": result.success}
