"""
Gestionnaires d'exceptions et correspondance OperationResult -> statut HTTP.
- Les services renvoient des OperationResult; la vue lève HTTPException à la frontière uniquement.
- 401 sur requête HTML: redirection vers /auth avec le message.
"""
import urllib.parse
from typing import Any, Dict
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from storefront.errors import ErrorKind, OperationResult

STATUS_BY_KIND = {
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.NOT_AUTHENTICATED: 401,
    ErrorKind.INVALID_COUPON: 400,
    ErrorKind.SLOT_CONFLICT: 409,
    ErrorKind.REMOTE_REJECTED: 400,
    ErrorKind.REMOTE_UNAVAILABLE: 503,
}

def status_for(result: OperationResult) -> int:
    if result.success:
        return 200
    if result.error == ErrorKind.REMOTE_REJECTED and (result.upstream_status or 0) >= 500:
        return 502
    return STATUS_BY_KIND.get(result.error, 400)

def ensure_success(result: OperationResult) -> Dict[str, Any]:
    """Retourne le corps JSON d'un succès, sinon lève HTTPException avec {message, error, field_errors, data}."""
    if not result.success:
        raise HTTPException(
            status_code=status_for(result),
            detail={
                "message": result.message,
                "error": result.error.value if result.error else None,
                "field_errors": result.field_errors,
                "data": result.data,
            },
        )
    return result.model_dump(mode="json", exclude={"upstream_status"})

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre le handler HTTPException.
    - Web (Accept text/html hors /api/): 401 -> redirection /auth?error=...
    - API: JSON {"detail": ...}
    """
    @app.exception_handler(HTTPException)
    async def html_redirect_on_auth_errors(request: Request, exc: HTTPException):
        if exc.status_code == 401:
            accept = (request.headers.get("accept") or "").lower()
            is_api = request.url.path.startswith("/api/")
            if "text/html" in accept and not is_api:
                detail = exc.detail if isinstance(exc.detail, str) else "Please login to continue"
                msg = urllib.parse.quote_plus(detail or "Please login to continue")
                return RedirectResponse(url=f"/auth?error={msg}", status_code=HTTP_303_SEE_OTHER)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
