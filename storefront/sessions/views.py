import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.sessions.registry import SessionRegistry, get_registry
from storefront.utils.security import clear_session_cookie, require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/session", tags=["Session API"])

# module storefront.sessions.views
@router.post("/logout")
async def logout(user: Dict[str, Any] = Depends(require_user), registry: SessionRegistry = Depends(get_registry)):
    """Déconnexion: panier vidé, coupon retiré, checkouts abandonnés, cookie supprimé."""
    closed = registry.close(str(user.get("id") or ""))
    response = JSONResponse({"success": True, "closed": closed})
    clear_session_cookie(response)
    return response
