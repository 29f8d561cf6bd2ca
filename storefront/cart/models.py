# module storefront.cart.models
"""Modèles du panier: lignes, coupon, état et décomposition du prix."""
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront.utils.currency import bdt_to_usd, to_decimal, usd_to_bdt


class LineItem(BaseModel):
    item_id: str
    product_id: str
    product_name: str = ""
    product_image: Optional[str] = None
    price_bdt: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    quantity: int = Field(ge=1)

    @property
    def unit_price(self) -> Decimal:
        """Prix unitaire en BDT; le prix USD n'est utilisé (converti) qu'en l'absence du prix BDT."""
        if self.price_bdt is not None:
            return self.price_bdt
        if self.price_usd is not None:
            return usd_to_bdt(self.price_usd)
        return Decimal(0)

    @classmethod
    def from_remote(cls, raw: Dict[str, Any]) -> "LineItem":
        """
        Construit une ligne depuis le payload de l'API panier.
        - Attend {_id, productId, productName, productImage, priceBDT, priceUSD, quantity}
        - 'price' est un alias historique de priceBDT.
        """
        bdt = raw.get("priceBDT")
        if bdt in (None, ""):
            bdt = raw.get("price")
        usd = raw.get("priceUSD")
        return cls(
            item_id=str(raw.get("_id") or raw.get("id") or raw.get("productId") or ""),
            product_id=str(raw.get("productId") or ""),
            product_name=raw.get("productName") or "",
            product_image=raw.get("productImage"),
            price_bdt=to_decimal(bdt) if bdt not in (None, "") else None,
            price_usd=to_decimal(usd) if usd not in (None, "") else None,
            quantity=int(raw.get("quantity") or 1),
        )

    def to_intent_line(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "productImage": self.product_image,
            "priceUSD": float(self.price_usd if self.price_usd is not None else bdt_to_usd(self.unit_price)),
            "priceBDT": float(self.unit_price),
            "quantity": self.quantity,
        }


class CouponKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed"


class Coupon(BaseModel):
    code: str
    kind: CouponKind
    value: Decimal = Field(ge=0)
    description: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return (v or "").strip().upper()

    def matches(self, code: str) -> bool:
        return self.code == (code or "").strip().upper()

    @classmethod
    def from_remote(cls, raw: Dict[str, Any]) -> "Coupon":
        return cls(
            code=str(raw.get("code") or ""),
            kind=CouponKind(str(raw.get("type") or raw.get("kind") or "").lower()),
            value=to_decimal(raw.get("value")),
            description=raw.get("description"),
        )


class CartState(BaseModel):
    items: List[LineItem] = Field(default_factory=list)
    applied_coupon: Optional[Coupon] = None


class PricingBreakdown(BaseModel):
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    item_count: int
