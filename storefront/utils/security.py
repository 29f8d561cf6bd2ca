from fastapi import Request, HTTPException, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from typing import Optional, Dict, Any
import logging

from storefront.infra.supabase_client import get_supabase

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def clear_session_cookie(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")

def token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME)

def get_user_from_token(token: str) -> Dict[str, Any]:
    """
    Résout un access token en utilisateur via Supabase Auth.
    Retour: {"id", "email", "role"} (dict vide si le token est refusé).
    """
    res = get_supabase().auth.get_user(token)
    user = getattr(res, "user", None)
    if user is None:
        return {}
    metadata = getattr(user, "user_metadata", None) or {}
    return {
        "id": getattr(user, "id", None),
        "email": getattr(user, "email", None),
        "role": str(metadata.get("role") or "user").lower(),
    }

async def get_current_user(request: Request) -> Dict[str, Any]:
    token = token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Please login to continue")
    try:
        user = await run_in_threadpool(get_user_from_token, token)
    except Exception:
        logger.warning("security.get_current_user token resolution failed")
        raise HTTPException(status_code=401, detail="Session expired, please login again")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Session expired, please login again")
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
