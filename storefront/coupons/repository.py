"""
Accès au magasin de coupons distant.
"""
from decimal import Decimal
from typing import Any, Dict
import logging

import storefront.infra.api_client as api_client
from storefront.errors import InvalidCoupon, RemoteRejected

logger = logging.getLogger(__name__)

# module storefront.coupons.repository
async def apply_coupon(user_key: str, code: str, subtotal: Decimal) -> Dict[str, Any]:
    """
    POST /coupon/apply -> descripteur {code, type, value}.
    - Le subtotal est informatif (règles de minimum d'achat côté serveur).
    - Tout refus serveur devient InvalidCoupon (message serveur conservé).
    """
    try:
        payload = await api_client.get_api_client().post(
            "/coupon/apply",
            json={"userId": user_key, "couponCode": code, "subtotal": float(subtotal)},
        )
    except RemoteRejected as e:
        raise InvalidCoupon(e.message, status_code=e.status_code, payload=e.payload) from e
    coupon = payload.get("coupon")
    if not isinstance(coupon, dict):
        raise InvalidCoupon("Invalid coupon code", payload=payload)
    return coupon
