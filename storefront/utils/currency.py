"""
Conversions et formatage BDT/USD à taux fixe (convention d'affichage).
- BDT: devise d'affichage (montants arrondis à l'unité lors des conversions)
- USD: devise source des fiches produits
"""
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional

from storefront.config import USD_TO_BDT_RATE

_PRICE_CHARS = re.compile(r"[$৳,\s]")

# module storefront.utils.currency
def to_decimal(value: Any) -> Decimal:
    """
    Convertit str|int|float|Decimal en Decimal.
    - Retourne Decimal(0) si la valeur est vide ou non numérique.
    """
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    try:
        # str() évite les artefacts binaires des float (ex: 0.1)
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0)

def usd_to_bdt(usd: Any) -> Decimal:
    """USD -> BDT, arrondi à l'unité (ex: 25.99 -> 3119)."""
    return (to_decimal(usd) * USD_TO_BDT_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

def bdt_to_usd(bdt: Any) -> Decimal:
    """BDT -> USD, arrondi au centime."""
    return (to_decimal(bdt) / USD_TO_BDT_RATE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def format_bdt(amount: Any) -> str:
    """Formate un montant BDT: 2500 -> '৳2,500'."""
    num = to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"৳{int(num):,}"

def format_usd(amount: Any) -> str:
    """Formate un montant USD: 25.5 -> '$25.50'."""
    num = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"${num:,.2f}"

def parse_price(price: Any) -> Optional[Decimal]:
    """
    Parse un prix affiché ('$25.99', '৳3,000', 12.5) en Decimal.
    - Retourne None si la valeur est absente ou illisible.
    """
    if price is None:
        return None
    if isinstance(price, (int, float, Decimal)):
        return to_decimal(price)
    cleaned = _PRICE_CHARS.sub("", str(price))
    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None
