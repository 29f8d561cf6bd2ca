"""
Erreurs et résultats partagés.
- RemoteError et sous-classes: levées par la couche transport (infra.api_client) et les repositories.
- OperationResult: valeur de retour des services; les erreurs distantes sont converties au point d'appel,
  jamais propagées jusqu'à la vue.
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

GENERIC_RETRY_MESSAGE = "Something went wrong. Please try again."


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "validation_error"
    NOT_AUTHENTICATED = "not_authenticated"
    REMOTE_REJECTED = "remote_rejected"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    INVALID_COUPON = "invalid_coupon"
    SLOT_CONFLICT = "slot_conflict"


class RemoteError(Exception):
    kind = ErrorKind.REMOTE_REJECTED

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}


class RemoteRejected(RemoteError):
    """Le serveur a explicitement refusé (message serveur affiché tel quel)."""
    kind = ErrorKind.REMOTE_REJECTED


class RemoteUnavailable(RemoteError):
    """Erreur réseau ou timeout."""
    kind = ErrorKind.REMOTE_UNAVAILABLE


class InvalidCoupon(RemoteRejected):
    kind = ErrorKind.INVALID_COUPON


class SlotConflict(RemoteRejected):
    """Créneau déjà réservé: l'utilisateur doit en choisir un autre (pas un transitoire)."""
    kind = ErrorKind.SLOT_CONFLICT


class OperationResult(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[ErrorKind] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)
    data: Optional[Dict[str, Any]] = None
    upstream_status: Optional[int] = None

    @classmethod
    def ok(cls, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ErrorKind, message: str, field_errors: Optional[Dict[str, str]] = None) -> "OperationResult":
        return cls(success=False, error=error, message=message, field_errors=field_errors or {})

    @classmethod
    def from_remote(cls, exc: RemoteError, fallback: str = GENERIC_RETRY_MESSAGE) -> "OperationResult":
        """
        Convertit une RemoteError en résultat.
        - RemoteUnavailable: message générique invitant à réessayer.
        - Refus serveur: message serveur verbatim, sinon fallback.
        """
        if isinstance(exc, RemoteUnavailable):
            result = cls.fail(exc.kind, fallback)
        else:
            result = cls.fail(exc.kind, exc.message or fallback)
        result.upstream_status = exc.status_code
        return result
