"""Dépendances FastAPI: session de l'utilisateur courant."""
from typing import Any, Dict

from fastapi import Depends

from storefront.sessions.registry import SessionRegistry, StorefrontSession, get_registry
from storefront.utils.security import require_user

# module storefront.sessions.dependencies
async def current_session(
    user: Dict[str, Any] = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
) -> StorefrontSession:
    return await registry.open(user)
