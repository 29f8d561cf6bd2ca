import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from storefront.app_setup.exceptions import ensure_success
from storefront.appointments import service as appointments_service
from storefront.appointments.service import AppointmentBookingOrchestrator
from storefront.appointments.slots import upcoming_dates
from storefront.sessions.dependencies import current_session
from storefront.sessions.registry import StorefrontSession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/appointments", tags=["Appointments API"])


class PaymentFailedBody(BaseModel):
    message: Optional[str] = None


class ConfirmBody(BaseModel):
    payment_intent_id: str


async def _open_booking(doctor_key: str, session: StorefrontSession) -> AppointmentBookingOrchestrator:
    result, doctor = await appointments_service.load_doctor(doctor_key)
    if doctor is None:
        ensure_success(result)
    return session.booking_for(doctor)

def _existing_booking(doctor_key: str, session: StorefrontSession) -> AppointmentBookingOrchestrator:
    booking = session.booking(doctor_key)
    if booking is None:
        raise HTTPException(status_code=404, detail="No booking in progress for this doctor")
    return booking

# module storefront.appointments.views
@router.get("/doctors/{doctor_key}")
async def doctor_availability(doctor_key: str, session: StorefrontSession = Depends(current_session)):
    """Fiche du vétérinaire, jours disponibles, créneaux de 30 min et dates sélectionnables."""
    booking = await _open_booking(doctor_key, session)
    data = booking.availability()
    data["dates"] = [d.isoformat() for d in upcoming_dates(booking.doctor.available_days)]
    data["session"] = booking.state()
    return {"success": True, **data}

@router.post("/doctors/{doctor_key}/begin")
async def begin_booking(doctor_key: str, session: StorefrontSession = Depends(current_session)):
    booking = await _open_booking(doctor_key, session)
    return ensure_success(booking.begin())

@router.post("/doctors/{doctor_key}/slot")
async def submit_slot(doctor_key: str, form: Dict[str, Any] = Body(...),
                      session: StorefrontSession = Depends(current_session)):
    """
    Soumet la sélection {date: "YYYY-MM-DD", time: "HH:MM"}.
    - 422 si date/créneau invalide (aucun appel distant), 409 si le créneau vient d'être pris.
    """
    booking = session.booking(doctor_key) or await _open_booking(doctor_key, session)
    return ensure_success(await booking.submit(form))

@router.post("/doctors/{doctor_key}/cancel")
async def cancel_booking_payment(doctor_key: str, session: StorefrontSession = Depends(current_session)):
    return ensure_success(_existing_booking(doctor_key, session).cancel())

@router.post("/doctors/{doctor_key}/payment-failed")
async def booking_payment_failed(doctor_key: str, body: PaymentFailedBody,
                                 session: StorefrontSession = Depends(current_session)):
    return ensure_success(_existing_booking(doctor_key, session).payment_failed(body.message))

@router.post("/doctors/{doctor_key}/confirm")
async def confirm_booking(doctor_key: str, body: ConfirmBody, session: StorefrontSession = Depends(current_session)):
    """Paiement confirmé: crée le rendez-vous et renvoie son appointmentId."""
    booking = _existing_booking(doctor_key, session)
    result = await booking.confirm_payment(body.payment_intent_id)
    logger.info("appointments.confirm user=%s doctor=%s success=%s", session.user.get("id"), booking.doctor.id, result.success)
    return ensure_success(result)

@router.delete("/doctors/{doctor_key}")
async def abandon_booking(doctor_key: str, session: StorefrontSession = Depends(current_session)):
    booking = session.booking(doctor_key)
    if booking is not None:
        booking.abandon()
    return {"success": True}
