"""
Logique de prix pure (pas de réseau, pas d'état).
Toutes les fonctions dépendent uniquement de (items, coupon) et ne modifient rien.
"""
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from storefront.config import SHIPPING_FEE_BDT, TAX_RATE
from storefront.cart.models import Coupon, CouponKind, LineItem, PricingBreakdown

ZERO = Decimal(0)

# module storefront.cart.pricing
def subtotal(items: Iterable[LineItem]) -> Decimal:
    """Σ prix unitaire (BDT) × quantité."""
    return sum((it.unit_price * it.quantity for it in items), ZERO)

def discount(items: Sequence[LineItem], coupon: Optional[Coupon]) -> Decimal:
    """
    Remise dans [0, subtotal].
    - Pourcentage: subtotal × value / 100 (value <= 100 validé côté serveur).
    - Montant fixe: min(value, subtotal).
    """
    if coupon is None:
        return ZERO
    base = subtotal(items)
    if coupon.kind == CouponKind.PERCENTAGE:
        return min(base * coupon.value / Decimal(100), base)
    if coupon.kind == CouponKind.FIXED_AMOUNT:
        return min(coupon.value, base)
    return ZERO

def tax(items: Sequence[LineItem], coupon: Optional[Coupon]) -> Decimal:
    """TVA calculée sur le montant après remise."""
    return (subtotal(items) - discount(items, coupon)) * TAX_RATE

def shipping(items: Sequence[LineItem]) -> Decimal:
    """Forfait si le panier n'est pas vide."""
    return SHIPPING_FEE_BDT if len(items) > 0 else ZERO

def total(items: Sequence[LineItem], coupon: Optional[Coupon]) -> Decimal:
    return subtotal(items) - discount(items, coupon) + tax(items, coupon) + shipping(items)

def item_count(items: Iterable[LineItem]) -> int:
    return sum(it.quantity for it in items)

def breakdown(items: Sequence[LineItem], coupon: Optional[Coupon]) -> PricingBreakdown:
    return PricingBreakdown(
        subtotal=subtotal(items),
        discount=discount(items, coupon),
        tax=tax(items, coupon),
        shipping=shipping(items),
        total=total(items, coupon),
        item_count=item_count(items),
    )
