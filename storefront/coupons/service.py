"""Cas d'usage 'coupons': validation distante d'un code et construction du Coupon."""
from decimal import Decimal
from typing import Optional, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError

from storefront.cart.models import Coupon
from storefront.coupons import repository
from storefront.errors import ErrorKind, OperationResult, RemoteError

logger = logging.getLogger(__name__)

INVALID_COUPON_MESSAGE = "Invalid coupon code"
EMPTY_CODE_MESSAGE = "Please enter a coupon code"

# module storefront.coupons.service
async def apply(user_key: Optional[str], code: str, current_subtotal: Decimal) -> Tuple[OperationResult, Optional[Coupon]]:
    """
    Valide un code coupon auprès du serveur.
    - Le code est seulement trimé (pas de contrôle de format local).
    - Retourne (OperationResult, Coupon|None); aucune exception ne remonte.
    """
    if not user_key:
        return OperationResult.fail(ErrorKind.NOT_AUTHENTICATED, "Please login to apply a coupon"), None
    cleaned = (code or "").strip()
    if not cleaned:
        return OperationResult.fail(ErrorKind.INVALID_COUPON, EMPTY_CODE_MESSAGE), None

    try:
        raw = await repository.apply_coupon(user_key, cleaned, current_subtotal)
    except RemoteError as e:
        logger.warning("coupons.service.apply rejected user=%s code=%s kind=%s", user_key, cleaned, e.kind.value)
        return OperationResult.from_remote(e, fallback=INVALID_COUPON_MESSAGE), None

    try:
        coupon = Coupon.from_remote(raw)
    except (ValueError, PydanticValidationError):
        # type inconnu ou valeur négative: le descripteur n'est pas exploitable
        logger.warning("coupons.service.apply unusable descriptor user=%s raw=%s", user_key, raw)
        return OperationResult.fail(ErrorKind.INVALID_COUPON, INVALID_COUPON_MESSAGE), None
    if not coupon.code:
        coupon = coupon.model_copy(update={"code": cleaned.upper()})
    return OperationResult.ok("Coupon applied successfully!", data={"coupon": coupon.model_dump(mode="json")}), coupon
