"""
Machine à états générique « checkout d'une ressource tarifée » (commande panier, rendez-vous).

    CollectingBilling --(formulaire valide + intent créé)--> AwaitingPayment
    AwaitingPayment   --(annulation)--------------------> CollectingBilling  (token jeté, détails conservés)
    AwaitingPayment   --(paiement confirmé)-------------> Completed          (référence transmise une seule fois)

La ressource (stratégie) fournit: précondition, validation du formulaire, montant,
création de l'intent de paiement et matérialisation (commande / rendez-vous).
Aucun appel n'est rejoué automatiquement: chaque nouvel essai est une action explicite.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple
import logging

from storefront.checkout.models import CheckoutSession, CheckoutStep
from storefront.errors import ErrorKind, OperationResult, RemoteError
from storefront.payments.materialization import MATERIALIZATION_FAILED_MESSAGE, PaymentMaterializer

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MESSAGE = "Please login to continue"
FORM_INVALID_MESSAGE = "Please correct the highlighted fields"
PAYMENT_FAILED_MESSAGE = "Payment failed. Please try again."


class PricedResource(ABC):
    """Stratégie de tarification/réservation consommée par PricedResourceCheckout."""

    kind: str = "resource"
    confirmation_failed_message: str = MATERIALIZATION_FAILED_MESSAGE

    @abstractmethod
    def precondition_error(self) -> Optional[str]:
        """Message si le checkout ne peut pas commencer (ex: panier vide), sinon None."""
        ...

    @abstractmethod
    def validate(self, form: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
        """Retourne (détails normalisés, erreurs par champ). Purement local."""
        ...

    @abstractmethod
    def amount(self) -> Decimal:
        ...

    @abstractmethod
    async def create_intent(self, details: Dict[str, Any], user: Dict[str, Any]) -> str:
        """Demande un token de paiement au collaborateur distant (peut lever RemoteError)."""
        ...

    @abstractmethod
    async def materialize(self, reference: str, details: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Matérialise la commande/le rendez-vous côté serveur (idempotent par référence côté serveur)."""
        ...

    def on_intent_error(self, session: CheckoutSession, exc: RemoteError) -> None:
        return None

    async def on_materialized(self, data: Dict[str, Any]) -> None:
        return None


class PricedResourceCheckout:
    def __init__(self, resource: PricedResource, user: Optional[Dict[str, Any]], materializer: PaymentMaterializer):
        self.resource = resource
        self.user = user or {}
        self.materializer = materializer
        self.session: Optional[CheckoutSession] = None

    # ------------------------------------------------------------------
    def _result(self, base: OperationResult) -> OperationResult:
        data = dict(base.data or {})
        if self.session is not None:
            data["session"] = self.session.public()
        return base.model_copy(update={"data": data})

    def _fail(self, kind: ErrorKind, message: str, field_errors: Optional[Dict[str, str]] = None) -> OperationResult:
        return self._result(OperationResult.fail(kind, message, field_errors))

    def _is_stale(self, session: CheckoutSession, attempt: int) -> bool:
        return (
            self.session is not session
            or session.attempt != attempt
            or session.step != CheckoutStep.COLLECTING_BILLING
        )

    # ------------------------------------------------------------------
    def begin(self) -> OperationResult:
        """Garde d'entrée: refuse si la précondition n'est pas remplie (ex: panier vide)."""
        error = self.resource.precondition_error()
        if error:
            return self._fail(ErrorKind.VALIDATION_ERROR, error)
        if self.session is None or self.session.step == CheckoutStep.COMPLETED:
            self.session = CheckoutSession()
        return self._result(OperationResult.ok(data={"amount": str(self.resource.amount())}))

    async def submit(self, form: Mapping[str, Any]) -> OperationResult:
        """
        CollectingBilling -> AwaitingPayment.
        - Validation locale d'abord: en cas d'erreur, aucun appel réseau.
        - Puis un unique appel de création d'intent (pas de retry).
        - Une réponse arrivée après annulation/abandon est ignorée.
        """
        if self.session is None:
            started = self.begin()
            if not started.success:
                return started
        session = self.session
        if session.step != CheckoutStep.COLLECTING_BILLING:
            return self._fail(ErrorKind.VALIDATION_ERROR, "Billing details can only be submitted before payment")
        if session.processing:
            return self._fail(ErrorKind.VALIDATION_ERROR, "A payment request is already in progress")

        error = self.resource.precondition_error()
        if error:
            session.set_error(ErrorKind.VALIDATION_ERROR, error)
            return self._fail(ErrorKind.VALIDATION_ERROR, error)

        details, field_errors = self.resource.validate(form)
        if field_errors:
            session.details = details
            session.set_error(ErrorKind.VALIDATION_ERROR, FORM_INVALID_MESSAGE, field_errors)
            return self._fail(ErrorKind.VALIDATION_ERROR, FORM_INVALID_MESSAGE, field_errors)

        if not self.user.get("id"):
            session.set_error(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED_MESSAGE)
            return self._fail(ErrorKind.NOT_AUTHENTICATED, LOGIN_REQUIRED_MESSAGE)

        session.attempt += 1
        attempt = session.attempt
        session.details = details
        session.processing = True
        session.clear_error()
        try:
            token = await self.resource.create_intent(details, self.user)
        except RemoteError as e:
            if self._is_stale(session, attempt):
                logger.info("checkout.%s late intent failure ignored user=%s", self.resource.kind, self.user.get("id"))
                return OperationResult.fail(e.kind, "Checkout was cancelled")
            session.processing = False
            result = OperationResult.from_remote(e)
            session.set_error(e.kind, result.message)
            self.resource.on_intent_error(session, e)
            logger.warning("checkout.%s intent failed user=%s kind=%s", self.resource.kind, self.user.get("id"), e.kind.value)
            return self._result(result.model_copy(update={"field_errors": dict(session.field_errors)}))

        if self._is_stale(session, attempt):
            logger.info("checkout.%s late intent ignored user=%s", self.resource.kind, self.user.get("id"))
            return OperationResult.fail(ErrorKind.VALIDATION_ERROR, "Checkout was cancelled")

        session.processing = False
        session.payment_intent_token = token
        session.step = CheckoutStep.AWAITING_PAYMENT
        return self._result(OperationResult.ok(data={"client_secret": token}))

    def cancel(self) -> OperationResult:
        """Retour à CollectingBilling: token jeté, détails conservés, requête en vol ignorée à son arrivée."""
        session = self.session
        if session is None:
            return self._fail(ErrorKind.VALIDATION_ERROR, "No checkout in progress")
        if session.step == CheckoutStep.COMPLETED:
            return self._fail(ErrorKind.VALIDATION_ERROR, "Checkout already completed")
        session.attempt += 1
        session.processing = False
        session.payment_intent_token = None
        session.step = CheckoutStep.COLLECTING_BILLING
        session.clear_error()
        return self._result(OperationResult.ok())

    def payment_failed(self, message: Optional[str]) -> OperationResult:
        """Echec côté passerelle: on reste en AwaitingPayment avec le message de la passerelle."""
        session = self.session
        if session is None or session.step != CheckoutStep.AWAITING_PAYMENT:
            return self._fail(ErrorKind.VALIDATION_ERROR, "No payment is awaiting confirmation")
        msg = (message or "").strip() or PAYMENT_FAILED_MESSAGE
        session.set_error(ErrorKind.REMOTE_REJECTED, msg)
        return self._result(OperationResult.fail(ErrorKind.REMOTE_REJECTED, msg))

    async def confirm_payment(self, reference: str) -> OperationResult:
        """
        AwaitingPayment -> Completed puis transmission de la référence au matérialiseur.
        - Une même référence n'est jamais soumise deux fois: une confirmation rejouée repasse par le
          matérialiseur (résultat mémorisé, attente de l'appel en vol, ou nouvel essai après un échec).
        """
        reference = (reference or "").strip()
        if not reference:
            return self._fail(ErrorKind.VALIDATION_ERROR, "Payment reference is required")
        session = self.session
        if session is None:
            return self._fail(ErrorKind.VALIDATION_ERROR, "No checkout in progress")
        if session.step == CheckoutStep.COMPLETED:
            if session.payment_reference != reference:
                return self._fail(ErrorKind.VALIDATION_ERROR, "Checkout already completed")
            return await self._materialize(session, reference)
        if session.step != CheckoutStep.AWAITING_PAYMENT:
            return self._fail(ErrorKind.VALIDATION_ERROR, "No payment is awaiting confirmation")

        session.step = CheckoutStep.COMPLETED
        session.payment_reference = reference
        session.payment_intent_token = None
        session.clear_error()
        return await self._materialize(session, reference)

    async def _materialize(self, session: CheckoutSession, reference: str) -> OperationResult:
        details = dict(session.details or {})
        user = self.user
        result = await self.materializer.materialize(
            reference,
            lambda: self.resource.materialize(reference, details, user),
            fallback=self.resource.confirmation_failed_message,
        )
        if result.success:
            first = session.result is None
            session.result = result.data or {}
            session.clear_error()
            if first:
                await self.resource.on_materialized(session.result)
        else:
            session.set_error(result.error, result.message)
        return self._result(result)

    def abandon(self) -> None:
        """Navigation ailleurs: la session est jetée (une réponse tardive sera ignorée)."""
        self.session = None

    def state(self) -> Optional[Dict[str, Any]]:
        return self.session.public() if self.session else None
