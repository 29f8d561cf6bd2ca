import re
from typing import Any, Dict, Mapping

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
PHONE_RE = re.compile(r"^[0-9+\-\s()]+$")

def _text(data: Mapping[str, Any], key: str) -> str:
    return str(data.get(key) or "").strip()

def validate_billing_details(data: Mapping[str, Any]) -> Dict[str, str]:
    """
    Valide le formulaire de facturation, sans appel réseau.
    Retourne {champ: message}; vide si le formulaire est valide.
    """
    errors: Dict[str, str] = {}

    if not _text(data, "full_name"):
        errors["full_name"] = "Full name is required"

    email = _text(data, "email")
    if not email:
        errors["email"] = "Email is required"
    elif not EMAIL_RE.search(email):
        errors["email"] = "Email is invalid"

    phone = _text(data, "phone")
    if not phone:
        errors["phone"] = "Phone number is required"
    elif not PHONE_RE.match(phone):
        errors["phone"] = "Phone number is invalid"

    if not _text(data, "address"):
        errors["address"] = "Address is required"
    if not _text(data, "city"):
        errors["city"] = "City is required"
    if not _text(data, "postal_code"):
        errors["postal_code"] = "Zip code is required"
    return errors
