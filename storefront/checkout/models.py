# module storefront.checkout.models
"""Modèles du checkout: étapes, détails de facturation, session."""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from storefront.errors import ErrorKind


class CheckoutStep(str, Enum):
    COLLECTING_BILLING = "collecting_billing"
    AWAITING_PAYMENT = "awaiting_payment"
    COMPLETED = "completed"


class BillingDetails(BaseModel):
    """Formulaire de facturation (les alias acceptent la forme camelCase du front)."""
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(default="", validation_alias=AliasChoices("full_name", "fullName"))
    email: str = ""
    phone: str = ""
    country: str = "Bangladesh"
    address: str = ""
    city: str = ""
    postal_code: str = Field(default="", validation_alias=AliasChoices("postal_code", "postalCode", "zip"))

    def to_remote(self) -> Dict[str, Any]:
        return {
            "fullName": self.full_name.strip(),
            "email": self.email.strip(),
            "phone": self.phone.strip(),
            "country": self.country.strip(),
            "address": self.address.strip(),
            "city": self.city.strip(),
            "zip": self.postal_code.strip(),
        }


class CheckoutSession(BaseModel):
    """
    Etat d'un checkout en cours (non persisté).
    - details: BillingDetails (commande) ou sélection de créneau (rendez-vous), conservés à l'annulation.
    - attempt: incrémenté à chaque soumission/annulation pour ignorer les réponses tardives.
    """
    step: CheckoutStep = CheckoutStep.COLLECTING_BILLING
    details: Optional[Dict[str, Any]] = None
    payment_intent_token: Optional[str] = None
    last_error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)
    payment_reference: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    processing: bool = False
    attempt: int = 0

    @property
    def billing_details(self) -> Optional[Dict[str, Any]]:
        return self.details

    def set_error(self, kind: Optional[ErrorKind], message: Optional[str], field_errors: Optional[Dict[str, str]] = None) -> None:
        self.error_kind = kind
        self.last_error = message
        self.field_errors = dict(field_errors or {})

    def clear_error(self) -> None:
        self.set_error(None, None)

    def public(self) -> Dict[str, Any]:
        """Vue exposée au front (le token n'est utile qu'au widget de paiement)."""
        return self.model_dump(mode="json", exclude={"attempt"})
