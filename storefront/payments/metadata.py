"""
Lecture des métadonnées des PaymentIntent Stripe (webhook).
"""
from typing import Any, Dict, Optional, Tuple

# module storefront.payments.metadata
def extract_intent(event: Dict[str, Any]) -> Tuple[Optional[str], Dict[str, Any]]:
    """
    Extrait (reference, metadata) depuis un event payment_intent.*.
    - Attend event.data.object.{id, metadata}
    """
    data_obj = (event or {}).get("data", {}).get("object", {}) if isinstance(event, dict) else {}
    return data_obj.get("id"), dict(data_obj.get("metadata") or {})

def intent_kind(metadata: Dict[str, Any]) -> str:
    """'appointment' si le PaymentIntent a été créé pour un rendez-vous, sinon 'order'."""
    kind = str(metadata.get("kind") or metadata.get("type") or "order").lower()
    return "appointment" if kind == "appointment" else "order"

def metadata_user(metadata: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    return (
        metadata.get("user_id") or metadata.get("userId"),
        metadata.get("user_email") or metadata.get("userEmail"),
    )

def appointment_data(metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "doctorId": metadata.get("doctorId"),
        "doctorName": metadata.get("doctorName"),
        "doctorEmail": metadata.get("doctorEmail"),
        "doctorFee": metadata.get("feeBDT"),
        "selectedDate": metadata.get("appointmentDate"),
        "selectedTime": metadata.get("appointmentTime"),
    }
