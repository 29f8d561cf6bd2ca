"""
Accès distant des rendez-vous: annuaire des vétérinaires, intent de paiement, vérification.
"""
from typing import Any, Dict, List, Optional
import logging

import storefront.infra.api_client as api_client
from storefront.appointments.models import Doctor
from storefront.errors import RemoteRejected, SlotConflict

logger = logging.getLogger(__name__)

SESSION_NOT_INITIALIZED = "Payment session not initialized. Please try again."

# module storefront.appointments.repository
async def fetch_doctors() -> List[Dict[str, Any]]:
    """GET /api/doctors -> liste brute des vétérinaires."""
    payload = await api_client.get_api_client().get("/api/doctors")
    doctors = payload.get("doctors") or []
    return [d for d in doctors if isinstance(d, dict)]

async def fetch_doctor(key: str) -> Optional[Doctor]:
    """Cherche un vétérinaire par _id ou par email (les liens du front utilisent l'email)."""
    for raw in await fetch_doctors():
        if raw.get("userEmail") == key or str(raw.get("_id") or "") == key:
            return Doctor.from_remote(raw)
    return None

async def create_appointment_payment_intent(payload: Dict[str, Any]) -> str:
    """
    POST /appointment/create-payment-intent -> clientSecret.
    - 409 avec 'conflict' -> SlotConflict (créneau déjà pris).
    """
    try:
        data = await api_client.get_api_client().post("/appointment/create-payment-intent", json=payload)
    except RemoteRejected as e:
        if e.status_code == 409 and e.payload.get("conflict"):
            logger.info("appointments.repository slot conflict doctor=%s date=%s time=%s",
                        payload.get("doctorId"), payload.get("selectedDate"), payload.get("selectedTime"))
            raise SlotConflict(e.message or "Time slot not available", status_code=409, payload=e.payload) from e
        raise
    token = data.get("clientSecret")
    if not token:
        raise RemoteRejected(SESSION_NOT_INITIALIZED, payload=data)
    return str(token)

async def verify_appointment_payment(reference: str, appointment_data: Dict[str, Any],
                                     user_id: Optional[str], user_email: Optional[str]) -> Dict[str, Any]:
    """POST /appointment/verify-payment: le serveur crée le rendez-vous (doublon -> rendez-vous existant)."""
    data = await api_client.get_api_client().post(
        "/appointment/verify-payment",
        json={
            "paymentIntentId": reference,
            "appointmentData": appointment_data,
            "userId": user_id,
            "userEmail": user_email,
        },
    )
    appointment = data.get("appointment") or {}
    return {
        "appointment": appointment,
        "appointmentId": appointment.get("appointmentId"),
        "paymentReference": reference,
    }
