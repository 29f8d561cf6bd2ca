"""
Module 'cart' (feature-first): point d'entrée public.
Réunit modèles, calculs de prix purs, accès distant et agrégat.
"""

from .models import LineItem, Coupon, CouponKind, CartState, PricingBreakdown
from .pricing import subtotal, discount, tax, shipping, total, item_count, breakdown
from .service import CartAggregate, build_cart_item

__all__ = [
    # modèles
    "LineItem",
    "Coupon",
    "CouponKind",
    "CartState",
    "PricingBreakdown",
    # prix
    "subtotal",
    "discount",
    "tax",
    "shipping",
    "total",
    "item_count",
    "breakdown",
    # agrégat
    "CartAggregate",
    "build_cart_item",
]
