# module storefront.appointments.models
"""Modèles des rendez-vous: vétérinaire (annuaire distant) et sélection de créneau."""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import BaseModel, Field

from storefront.appointments.slots import format_minutes, to_minutes
from storefront.config import DEFAULT_AVAILABLE_END, DEFAULT_AVAILABLE_START, DEFAULT_CONSULTATION_FEE_BDT
from storefront.utils.currency import to_decimal

logger = logging.getLogger(__name__)


def _working_window(start: Any, end: Any) -> Tuple[str, str]:
    """Plage horaire normalisée en HH:MM; une valeur illisible donne la plage par défaut."""
    try:
        return (
            format_minutes(to_minutes(str(start or DEFAULT_AVAILABLE_START))),
            format_minutes(to_minutes(str(end or DEFAULT_AVAILABLE_END))),
        )
    except ValueError:
        logger.warning("appointments.doctor invalid working hours start=%r end=%r", start, end)
        return DEFAULT_AVAILABLE_START, DEFAULT_AVAILABLE_END


class Doctor(BaseModel):
    id: str
    name: str = ""
    email: str = ""
    specialization: str = "General Veterinary"
    meeting_fee_bdt: Decimal = DEFAULT_CONSULTATION_FEE_BDT
    available_days: List[str] = Field(default_factory=list)
    available_start: str = DEFAULT_AVAILABLE_START
    available_end: str = DEFAULT_AVAILABLE_END

    @classmethod
    def from_remote(cls, raw: Dict[str, Any]) -> "Doctor":
        """
        Mappe un utilisateur 'doctor' de l'annuaire distant.
        - {_id, userName, userEmail, specialization, meeting_fee_bdt, availableDays|available_days,
           availableTimeStart, availableTimeEnd}
        - Tarif absent -> tarif par défaut; jours absents -> aucun filtre; horaires illisibles -> plage par défaut.
        """
        fee = raw.get("meeting_fee_bdt")
        start, end = _working_window(raw.get("availableTimeStart"), raw.get("availableTimeEnd"))
        return cls(
            id=str(raw.get("_id") or raw.get("id") or ""),
            name=raw.get("userName") or raw.get("name") or "",
            email=raw.get("userEmail") or raw.get("email") or "",
            specialization=raw.get("specialization") or "General Veterinary",
            meeting_fee_bdt=to_decimal(fee) if fee not in (None, "", 0) else DEFAULT_CONSULTATION_FEE_BDT,
            available_days=list(raw.get("availableDays") or raw.get("available_days") or []),
            available_start=start,
            available_end=end,
        )

    def matches(self, key: str) -> bool:
        return bool(key) and key in (self.id, self.email)


class AppointmentSelection(BaseModel):
    date: Optional[str] = None
    time: Optional[str] = None
