"""
Réservation de rendez-vous: même machine que le checkout produit, ressource = un vétérinaire.
- Prix: tarif fixe de consultation.
- « Formulaire »: date + créneau (AppointmentSelection).
- Conflit de créneau (409): l'utilisateur reste sur la sélection, créneau effacé.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging

from storefront.appointments import repository
from storefront.appointments.models import AppointmentSelection, Doctor
from storefront.appointments.slots import generate_time_slots, is_date_available, to_minutes, format_minutes, weekday_name
from storefront.checkout.machine import PricedResource, PricedResourceCheckout
from storefront.checkout.models import CheckoutSession
from storefront.errors import ErrorKind, OperationResult, RemoteError, SlotConflict
from storefront.payments.materialization import PaymentMaterializer

logger = logging.getLogger(__name__)

CONFIRMATION_FAILED_MESSAGE = "Payment successful but error confirming appointment. Please contact support."


class AppointmentResource(PricedResource):
    kind = "appointment"
    confirmation_failed_message = CONFIRMATION_FAILED_MESSAGE

    def __init__(self, doctor: Doctor, today: Optional[Callable[[], date]] = None):
        self.doctor = doctor
        self._today = today or date.today

    def precondition_error(self) -> Optional[str]:
        return None if self.doctor and self.doctor.id else "Doctor not found"

    def time_slots(self) -> List[str]:
        return generate_time_slots(self.doctor.available_start, self.doctor.available_end)

    def validate(self, form: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
        """
        Valide la sélection (local):
        - date ISO, pas dans le passé, jour de disponibilité du vétérinaire
        - créneau parmi ceux générés pour la plage horaire du vétérinaire
        """
        selection = AppointmentSelection(
            date=str(form.get("date") or form.get("selectedDate") or "").strip() or None,
            time=str(form.get("time") or form.get("selectedTime") or "").strip() or None,
        )
        errors: Dict[str, str] = {}

        if not selection.date:
            errors["date"] = "Please select an appointment date"
        else:
            try:
                day = date.fromisoformat(selection.date)
            except ValueError:
                errors["date"] = "Invalid date"
            else:
                if day < self._today():
                    errors["date"] = "Date cannot be in the past"
                elif not is_date_available(day, self.doctor.available_days):
                    errors["date"] = f"Doctor is not available on {weekday_name(day)}"

        if not selection.time:
            errors["time"] = "Please select a time slot"
        else:
            try:
                normalized = format_minutes(to_minutes(selection.time))
            except ValueError:
                errors["time"] = "Invalid time slot"
            else:
                if normalized not in self.time_slots():
                    errors["time"] = "Selected time is outside the doctor's available hours"
                else:
                    selection.time = normalized
        return selection.model_dump(), errors

    def amount(self) -> Decimal:
        return self.doctor.meeting_fee_bdt

    def _appointment_data(self, details: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "doctorId": self.doctor.id,
            "doctorName": self.doctor.name,
            "doctorEmail": self.doctor.email,
            "doctorFee": float(self.doctor.meeting_fee_bdt),
            "selectedDate": details.get("date"),
            "selectedTime": details.get("time"),
        }

    async def create_intent(self, details: Dict[str, Any], user: Dict[str, Any]) -> str:
        payload = {**self._appointment_data(details), "userId": user.get("id"), "userEmail": user.get("email")}
        return await repository.create_appointment_payment_intent(payload)

    def on_intent_error(self, session: CheckoutSession, exc: RemoteError) -> None:
        if isinstance(exc, SlotConflict):
            session.details = {**(session.details or {}), "time": None}
            session.field_errors = {"time": exc.message or "Time slot not available"}

    async def materialize(self, reference: str, details: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        return await repository.verify_appointment_payment(
            reference, self._appointment_data(details), user.get("id"), user.get("email")
        )


class AppointmentBookingOrchestrator(PricedResourceCheckout):
    def __init__(self, doctor: Doctor, user: Optional[Dict[str, Any]], materializer: PaymentMaterializer,
                 today: Optional[Callable[[], date]] = None):
        super().__init__(AppointmentResource(doctor, today=today), user, materializer)
        self.doctor = doctor

    def availability(self) -> Dict[str, Any]:
        return {
            "doctor": self.doctor.model_dump(mode="json"),
            "available_days": list(self.doctor.available_days),
            "time_slots": self.resource.time_slots(),
        }


async def load_doctor(key: str) -> Tuple[OperationResult, Optional[Doctor]]:
    """Charge un vétérinaire de l'annuaire distant; erreurs converties en OperationResult."""
    try:
        doctor = await repository.fetch_doctor(key)
    except RemoteError as e:
        logger.warning("appointments.load_doctor failed key=%s kind=%s", key, e.kind.value)
        return OperationResult.from_remote(e, fallback="Error loading doctor data"), None
    if doctor is None:
        return OperationResult.fail(ErrorKind.VALIDATION_ERROR, "Doctor not found"), None
    return OperationResult.ok(data={"doctor": doctor.model_dump(mode="json")}), doctor
