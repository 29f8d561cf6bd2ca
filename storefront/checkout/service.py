"""
Checkout produit: ressource « panier » branchée sur la machine générique.
"""
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError

from storefront.cart.service import CartAggregate
from storefront.checkout import repository
from storefront.checkout.machine import PricedResource, PricedResourceCheckout
from storefront.checkout.models import BillingDetails
from storefront.payments.materialization import PaymentMaterializer
from storefront.utils.validators import validate_billing_details

logger = logging.getLogger(__name__)

EMPTY_CART_MESSAGE = "Your cart is empty"


def _as_text_form(form: Mapping[str, Any]) -> Dict[str, str]:
    return {k: ("" if v is None else str(v)) for k, v in (form or {}).items()}


class CartCheckoutResource(PricedResource):
    kind = "order"
    confirmation_failed_message = "Payment successful but error confirming order. Please contact support."

    def __init__(self, cart: CartAggregate):
        self.cart = cart

    def precondition_error(self) -> Optional[str]:
        return EMPTY_CART_MESSAGE if self.cart.is_empty else None

    def validate(self, form: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
        try:
            details = BillingDetails.model_validate(_as_text_form(form))
        except PydanticValidationError:
            details = BillingDetails()
        data = details.model_dump()
        return data, validate_billing_details(data)

    def amount(self) -> Decimal:
        return self.cart.total

    async def create_intent(self, details: Dict[str, Any], user: Dict[str, Any]) -> str:
        coupon = self.cart.applied_coupon
        billing = BillingDetails.model_validate(details).to_remote()
        payload = {
            "items": [it.to_intent_line() for it in self.cart.items],
            "totalBDT": float(self.cart.total),
            "couponCode": coupon.code if coupon else None,
            "billingDetails": {**billing, "userId": user.get("id"), "userEmail": user.get("email")},
        }
        return await repository.create_order_payment_intent(payload)

    async def materialize(self, reference: str, details: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        return await repository.verify_order_payment(reference, user.get("id"))

    async def on_materialized(self, data: Dict[str, Any]) -> None:
        # la commande existe: le panier local (et distant) est vidé
        result = await self.cart.clear()
        if not result.success:
            logger.warning("checkout.service clear cart after order failed user=%s msg=%s", self.cart.user_key, result.message)


class CheckoutOrchestrator(PricedResourceCheckout):
    """Checkout du panier de l'utilisateur courant."""

    def __init__(self, cart: CartAggregate, user: Optional[Dict[str, Any]], materializer: PaymentMaterializer):
        super().__init__(CartCheckoutResource(cart), user, materializer)
        self.cart = cart
