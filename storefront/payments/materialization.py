"""
Matérialisation idempotente des paiements confirmés (commande ou rendez-vous).
- Clé d'idempotence: la référence de paiement (id du PaymentIntent).
- Deux chemins possibles (confirmation du front, webhook Stripe) partagent la même instance.
- Un échec n'est pas mémorisé: un nouvel essai explicite (ou le webhook) peut réussir.
- Mémoire bornée: les plus anciens succès sont oubliés au-delà de MATERIALIZED_CACHE_SIZE
  (le serveur distant reste idempotent par référence), un verrou disparaît quand plus personne ne l'attend.
"""
import asyncio
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from storefront.config import MATERIALIZED_CACHE_SIZE
from storefront.errors import OperationResult, RemoteError
from storefront.payments import stripe_client

logger = logging.getLogger(__name__)

MATERIALIZATION_FAILED_MESSAGE = "Payment successful but error confirming. Please contact support."


class PaymentMaterializer:
    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries or MATERIALIZED_CACHE_SIZE
        self._done: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def is_materialized(self, reference: str) -> bool:
        return reference in self._done

    def pending_locks(self) -> int:
        return len(self._locks)

    def __len__(self) -> int:
        return len(self._done)

    def _remember(self, reference: str, data: Dict[str, Any]) -> None:
        self._done[reference] = data
        self._done.move_to_end(reference)
        while len(self._done) > self.max_entries:
            evicted, _ = self._done.popitem(last=False)
            logger.debug("payments.materialize evicted reference=%s", evicted)

    def _acquire_slot(self, reference: str) -> asyncio.Lock:
        self._users[reference] = self._users.get(reference, 0) + 1
        return self._locks.setdefault(reference, asyncio.Lock())

    def _release_slot(self, reference: str) -> None:
        self._users[reference] -= 1
        if not self._users[reference]:
            del self._users[reference]
            self._locks.pop(reference, None)

    async def materialize(
        self,
        reference: str,
        submit: Callable[[], Awaitable[Dict[str, Any]]],
        verify: bool = True,
        fallback: str = MATERIALIZATION_FAILED_MESSAGE,
    ) -> OperationResult:
        """
        Soumet la référence une seule fois.
        - verify=True: contrôle le statut du PaymentIntent chez Stripe si une clé est configurée.
        - Appels concurrents pour une même référence: sérialisés, le second reçoit le résultat mémorisé.
        """
        lock = self._acquire_slot(reference)
        try:
            async with lock:
                if reference in self._done:
                    logger.info("payments.materialize duplicate reference=%s", reference)
                    return OperationResult.ok("Payment already confirmed", data=self._done[reference])
                try:
                    if verify:
                        await stripe_client.verify_payment_intent(reference)
                    data = await submit()
                except RemoteError as e:
                    logger.warning("payments.materialize failed reference=%s kind=%s msg=%s", reference, e.kind.value, e.message)
                    return OperationResult.from_remote(e, fallback=fallback)
                self._remember(reference, data or {})
                logger.info("payments.materialize ok reference=%s", reference)
                return OperationResult.ok("Payment confirmed", data=self._done[reference])
        finally:
            self._release_slot(reference)
