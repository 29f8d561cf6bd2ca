"""
Registre des sessions utilisateur du BFF.
- Une StorefrontSession par utilisateur authentifié: panier, checkout produit, réservations par vétérinaire.
- open(user): à la première requête authentifiée (charge le panier distant).
- close(user_id): à la déconnexion (panier vidé, coupon retiré, checkouts abandonnés).
- Une session inactive depuis SESSION_IDLE_TIMEOUT_SECONDS est fermée au prochain open().
"""
import asyncio
import time
from typing import Any, Callable, Dict, List, Optional
import logging

from fastapi import Request

from storefront.appointments.models import Doctor
from storefront.appointments.service import AppointmentBookingOrchestrator
from storefront.cart.service import CartAggregate
from storefront.checkout.service import CheckoutOrchestrator
from storefront.config import SESSION_IDLE_TIMEOUT_SECONDS
from storefront.payments.materialization import PaymentMaterializer

logger = logging.getLogger(__name__)


def user_key_of(user: Dict[str, Any]) -> str:
    """Clé du panier distant: l'email de l'utilisateur (repli sur l'id)."""
    return str(user.get("email") or user.get("id") or "")


class StorefrontSession:
    def __init__(self, user: Dict[str, Any], materializer: PaymentMaterializer, now: float = 0.0):
        self.user = user
        self.last_seen = now
        self.cart = CartAggregate(user_key_of(user))
        self.checkout = CheckoutOrchestrator(self.cart, user, materializer)
        self.bookings: Dict[str, AppointmentBookingOrchestrator] = {}
        self._materializer = materializer

    def booking_for(self, doctor: Doctor) -> AppointmentBookingOrchestrator:
        booking = self.bookings.get(doctor.id)
        if booking is None:
            booking = AppointmentBookingOrchestrator(doctor, self.user, self._materializer)
            self.bookings[doctor.id] = booking
        elif booking.session is None:
            # pas de réservation en cours: on prend la fiche à jour
            booking.doctor = doctor
            booking.resource.doctor = doctor
        return booking

    def booking(self, key: str) -> Optional[AppointmentBookingOrchestrator]:
        """Réservation en cours pour un vétérinaire (clé: id ou email)."""
        booking = self.bookings.get(key)
        if booking is not None:
            return booking
        return next((b for b in self.bookings.values() if b.doctor.matches(key)), None)

    def close(self) -> None:
        self.checkout.abandon()
        for booking in self.bookings.values():
            booking.abandon()
        self.bookings.clear()
        self.cart.reset()


class SessionRegistry:
    def __init__(
        self,
        materializer: Optional[PaymentMaterializer] = None,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.materializer = materializer or PaymentMaterializer()
        self.idle_timeout = SESSION_IDLE_TIMEOUT_SECONDS if idle_timeout is None else idle_timeout
        self._clock = clock
        self._sessions: Dict[str, StorefrontSession] = {}
        self._lock = asyncio.Lock()

    def expire_idle(self) -> List[str]:
        """Ferme les sessions sans requête depuis idle_timeout; retourne les ids fermés."""
        deadline = self._clock() - self.idle_timeout
        expired = [uid for uid, s in self._sessions.items() if s.last_seen < deadline]
        for uid in expired:
            self._sessions.pop(uid).close()
            logger.info("sessions.expire user=%s", uid)
        return expired

    async def open(self, user: Dict[str, Any]) -> StorefrontSession:
        """Retourne la session existante, sinon la crée et charge le panier (un échec laisse un panier vide)."""
        user_id = str(user.get("id") or "")
        async with self._lock:
            self.expire_idle()
            session = self._sessions.get(user_id)
            if session is not None:
                session.last_seen = self._clock()
                return session
            session = StorefrontSession(user, self.materializer, now=self._clock())
            self._sessions[user_id] = session
        result = await session.cart.load_for_user(user_key_of(user))
        if not result.success:
            logger.warning("sessions.open cart load failed user=%s msg=%s", user_id, result.message)
        logger.info("sessions.open user=%s items=%s", user_id, session.cart.item_count)
        return session

    def close(self, user_id: str) -> bool:
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.close()
        logger.info("sessions.close user=%s", user_id)
        return True

    def __len__(self) -> int:
        return len(self._sessions)


def get_materializer(request: Request) -> PaymentMaterializer:
    """Matérialiseur partagé de l'application (créé par le lifespan, sinon à la demande)."""
    materializer = getattr(request.app.state, "materializer", None)
    if materializer is None:
        materializer = PaymentMaterializer()
        request.app.state.materializer = materializer
    return materializer


def get_registry(request: Request) -> SessionRegistry:
    """Dépendance FastAPI: registre créé par le lifespan (app.state.sessions)."""
    registry = getattr(request.app.state, "sessions", None)
    if registry is None:
        registry = SessionRegistry(get_materializer(request))
        request.app.state.sessions = registry
    return registry
