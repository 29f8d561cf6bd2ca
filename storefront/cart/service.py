"""
Agrégat panier: miroir en mémoire du panier distant d'un utilisateur + calcul des prix.

Règles:
- Les lignes ne sont remplacées que par une liste complète renvoyée par le serveur (jamais patchées localement).
- Les mutations sont sérialisées (une seule en vol) et chaque réponse porte un numéro de séquence;
  si le serveur renvoie une 'version', une réponse plus ancienne que la dernière appliquée est ignorée.
- Les erreurs distantes sont converties en OperationResult au point d'appel.
"""
import asyncio
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from pydantic import ValidationError as PydanticValidationError

from storefront.cart import pricing
from storefront.cart import repository
from storefront.cart.models import CartState, Coupon, LineItem, PricingBreakdown
from storefront.cart.repository import CartSnapshot
from storefront.coupons import service as coupons_service
from storefront.errors import ErrorKind, OperationResult, RemoteError
from storefront.utils.currency import bdt_to_usd, format_bdt, format_usd, parse_price, to_decimal, usd_to_bdt

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MESSAGE = "Please login to add items to cart"


def build_cart_item(product: Dict[str, Any], quantity: int = 1) -> Dict[str, Any]:
    """
    Construit le payload d'ajout depuis une fiche produit.
    - priceUSD: product.priceUSD, sinon parse de product.price ('$25.99').
    - priceBDT: product.priceBDT, sinon conversion du prix USD.
    """
    usd = product.get("priceUSD")
    price_usd = to_decimal(usd) if usd not in (None, "") else (parse_price(product.get("price")) or Decimal(0))
    bdt = product.get("priceBDT")
    price_bdt = to_decimal(bdt) if bdt not in (None, "") else usd_to_bdt(price_usd)
    images = product.get("images") or []
    return {
        "productId": str(product.get("id") or product.get("_id") or product.get("productId") or ""),
        "productName": product.get("name") or product.get("productName") or "",
        "productImage": product.get("image") or (images[0] if images else None),
        "priceUSD": float(price_usd),
        "priceBDT": float(price_bdt),
        "quantity": int(quantity),
    }


class CartAggregate:
    def __init__(self, user_key: Optional[str] = None):
        self.user_key = user_key
        self._state = CartState()
        self._lock = asyncio.Lock()
        self._issued_seq = 0
        self._applied_seq = 0
        self._version: Optional[int] = None
        self.loading = False

    # ------------------------------------------------------------------
    # Etat
    # ------------------------------------------------------------------
    @property
    def items(self) -> List[LineItem]:
        return list(self._state.items)

    @property
    def applied_coupon(self) -> Optional[Coupon]:
        return self._state.applied_coupon

    @property
    def is_empty(self) -> bool:
        return not self._state.items

    def _next_seq(self) -> int:
        self._issued_seq += 1
        return self._issued_seq

    def _replace_items(self, snapshot: CartSnapshot, seq: int) -> bool:
        raw_items, version = snapshot
        if seq <= self._applied_seq:
            logger.info("cart.replace stale seq=%s applied=%s user=%s", seq, self._applied_seq, self.user_key)
            return False
        if version is not None and self._version is not None and version < self._version:
            logger.info("cart.replace stale version=%s current=%s user=%s", version, self._version, self.user_key)
            return False
        items: List[LineItem] = []
        for raw in raw_items:
            try:
                items.append(LineItem.from_remote(raw))
            except (PydanticValidationError, ValueError, TypeError):
                logger.warning("cart.replace ignored invalid line user=%s raw=%s", self.user_key, raw)
        self._state = CartState(items=items, applied_coupon=self._state.applied_coupon)
        self._applied_seq = seq
        if version is not None:
            self._version = version
        return True

    def reset(self) -> None:
        """Déconnexion: panier vide, coupon retiré, plus d'utilisateur."""
        self._state = CartState()
        self._applied_seq = self._issued_seq
        self._version = None
        self.user_key = None

    # ------------------------------------------------------------------
    # Mutations (distantes)
    # ------------------------------------------------------------------
    async def _mutate(
        self,
        op: str,
        call: Callable[[], Awaitable[CartSnapshot]],
        success_message: Optional[str],
        failure_message: str,
    ) -> OperationResult:
        if not self.user_key:
            return OperationResult.fail(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED_MESSAGE)
        async with self._lock:
            seq = self._next_seq()
            try:
                snapshot = await call()
            except RemoteError as e:
                logger.warning("cart.%s failed user=%s kind=%s msg=%s", op, self.user_key, e.kind.value, e.message)
                return OperationResult.from_remote(e, fallback=failure_message)
            self._replace_items(snapshot, seq)
        return OperationResult.ok(success_message)

    async def load_for_user(self, user_key: str) -> OperationResult:
        """
        Remplace le panier par l'instantané distant.
        - En cas d'échec, le panier est vidé (pas de données périmées) et l'erreur est renvoyée.
        """
        self.user_key = user_key
        async with self._lock:
            seq = self._next_seq()
            self.loading = True
            try:
                snapshot = await repository.fetch_cart(user_key)
            except RemoteError as e:
                logger.warning("cart.load failed user=%s kind=%s", user_key, e.kind.value)
                self._state = CartState(applied_coupon=self._state.applied_coupon)
                self._applied_seq = seq
                return OperationResult.from_remote(e, fallback="Failed to load cart")
            finally:
                self.loading = False
            self._replace_items(snapshot, seq)
        return OperationResult.ok()

    async def add_item(self, product: Dict[str, Any], quantity: int = 1) -> OperationResult:
        if not self.user_key:
            return OperationResult.fail(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED_MESSAGE)
        if int(quantity) < 1:
            return OperationResult.fail(ErrorKind.VALIDATION_ERROR, "Quantity must be at least 1",
                                        field_errors={"quantity": "Quantity must be at least 1"})
        payload = build_cart_item(product, quantity)
        if not payload["productId"]:
            return OperationResult.fail(ErrorKind.VALIDATION_ERROR, "Invalid product",
                                        field_errors={"product": "Product id is required"})
        user_key = self.user_key
        return await self._mutate(
            "add_item",
            lambda: repository.add_item(user_key, payload),
            "Item added to cart",
            "Failed to add item to cart",
        )

    async def set_quantity(self, item_id: str, new_quantity: int) -> Optional[OperationResult]:
        """Quantité < 1: ignorée silencieusement (None), aucun appel réseau."""
        if new_quantity < 1:
            return None
        user_key = self.user_key
        return await self._mutate(
            "set_quantity",
            lambda: repository.update_quantity(user_key, item_id, new_quantity),
            None,
            "Failed to update quantity",
        )

    async def remove_item(self, item_id: str) -> OperationResult:
        user_key = self.user_key
        return await self._mutate(
            "remove_item",
            lambda: repository.remove_item(user_key, item_id),
            "Item removed from cart",
            "Failed to remove item",
        )

    async def clear(self) -> OperationResult:
        """Vide le panier et retire le coupon localement dès l'acquittement (quelle que soit la forme du payload)."""
        if not self.user_key:
            return OperationResult.fail(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED_MESSAGE)
        async with self._lock:
            seq = self._next_seq()
            try:
                await repository.clear_cart(self.user_key)
            except RemoteError as e:
                logger.warning("cart.clear failed user=%s kind=%s", self.user_key, e.kind.value)
                return OperationResult.from_remote(e, fallback="Failed to clear cart")
            self._state = CartState()
            self._applied_seq = seq
        return OperationResult.ok("Cart cleared")

    # ------------------------------------------------------------------
    # Coupon
    # ------------------------------------------------------------------
    async def apply_coupon(self, code: str) -> OperationResult:
        """Un nouveau coupon remplace toujours le précédent (jamais de cumul)."""
        async with self._lock:
            result, coupon = await coupons_service.apply(self.user_key, code, self.subtotal)
            if coupon is not None:
                self._state = CartState(items=self._state.items, applied_coupon=coupon)
        return result

    def clear_coupon(self) -> None:
        self._state = CartState(items=self._state.items, applied_coupon=None)

    # ------------------------------------------------------------------
    # Dérivés (purs)
    # ------------------------------------------------------------------
    @property
    def subtotal(self) -> Decimal:
        return pricing.subtotal(self._state.items)

    @property
    def discount(self) -> Decimal:
        return pricing.discount(self._state.items, self._state.applied_coupon)

    @property
    def tax(self) -> Decimal:
        return pricing.tax(self._state.items, self._state.applied_coupon)

    @property
    def shipping(self) -> Decimal:
        return pricing.shipping(self._state.items)

    @property
    def total(self) -> Decimal:
        return pricing.total(self._state.items, self._state.applied_coupon)

    @property
    def item_count(self) -> int:
        return pricing.item_count(self._state.items)

    def breakdown(self) -> PricingBreakdown:
        return pricing.breakdown(self._state.items, self._state.applied_coupon)

    def snapshot(self) -> Dict[str, Any]:
        breakdown = self.breakdown()
        return {
            "items": [it.model_dump(mode="json") for it in self._state.items],
            "applied_coupon": self._state.applied_coupon.model_dump(mode="json") if self._state.applied_coupon else None,
            "pricing": breakdown.model_dump(mode="json"),
            "display": {
                "subtotal": format_bdt(breakdown.subtotal),
                "discount": format_bdt(breakdown.discount),
                "tax": format_bdt(breakdown.tax),
                "shipping": format_bdt(breakdown.shipping),
                "total": format_bdt(breakdown.total),
                "total_usd": format_usd(bdt_to_usd(breakdown.total)),
            },
        }
