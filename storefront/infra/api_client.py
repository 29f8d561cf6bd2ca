"""
Client HTTP asynchrone vers l'API distante (panier, coupons, commandes, médecins, rendez-vous).
- Un seul httpx.AsyncClient partagé (créé par le lifespan, ou paresseusement).
- Traduit les échecs en RemoteError: transport/timeout -> RemoteUnavailable, refus -> RemoteRejected.
- Aucun retry automatique.
"""
from typing import Any, Dict, Optional
import logging

import httpx

from storefront.config import REMOTE_API_URL, REMOTE_TIMEOUT_SECONDS
from storefront.errors import RemoteRejected, RemoteUnavailable

logger = logging.getLogger(__name__)

_client: Optional["RemoteApiClient"] = None


def _message_from(payload: Dict[str, Any], fallback: str) -> str:
    msg = payload.get("message") or payload.get("error") or payload.get("detail")
    return str(msg) if msg else fallback


class RemoteApiClient:
    def __init__(self, base_url: str = REMOTE_API_URL, timeout: float = REMOTE_TIMEOUT_SECONDS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Exécute la requête et retourne le payload JSON (dict).
        - Lève RemoteUnavailable sur erreur réseau/timeout.
        - Lève RemoteRejected sur statut >= 400 ou {"success": false}.
        """
        try:
            # DELETE avec body (API panier): httpx.request accepte json= pour toutes les méthodes
            resp = await self._http.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.warning("api_client.request timeout method=%s path=%s", method, path)
            raise RemoteUnavailable(f"Timeout: {e}") from e
        except httpx.TransportError as e:
            logger.warning("api_client.request transport error method=%s path=%s err=%s", method, path, e)
            raise RemoteUnavailable(str(e) or "Network error") from e

        try:
            payload = resp.json() if resp.content else {}
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {"data": payload}

        if resp.status_code >= 400:
            raise RemoteRejected(
                _message_from(payload, f"HTTP {resp.status_code}"),
                status_code=resp.status_code,
                payload=payload,
            )
        if payload.get("success") is False:
            raise RemoteRejected(_message_from(payload, "Request rejected"), status_code=resp.status_code, payload=payload)
        return payload

    async def get(self, path: str) -> Dict[str, Any]:
        return await self.request("GET", path)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("DELETE", path, json=json)

    async def aclose(self) -> None:
        await self._http.aclose()


def get_api_client() -> RemoteApiClient:
    global _client
    if _client is None:
        _client = RemoteApiClient()
    return _client


def set_api_client(client: Optional[RemoteApiClient]) -> None:
    """Remplace le client partagé (lifespan, tests)."""
    global _client
    _client = client
