"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Client HTTP de l'API distante (httpx.AsyncClient partagé)
- Matérialiseur de paiements (partagé entre confirmations front et webhook)
- Registre des sessions utilisateur
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from storefront.config import REMOTE_API_URL, REMOTE_TIMEOUT_SECONDS
from storefront.infra import api_client
from storefront.payments.materialization import PaymentMaterializer
from storefront.payments import stripe_client
from storefront.sessions.registry import SessionRegistry

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("uvicorn.error")
    client = api_client.RemoteApiClient(REMOTE_API_URL, REMOTE_TIMEOUT_SECONDS)
    api_client.set_api_client(client)
    app.state.materializer = PaymentMaterializer()
    app.state.sessions = SessionRegistry(app.state.materializer)
    logger.info("Remote API %s (timeout=%ss)", REMOTE_API_URL, REMOTE_TIMEOUT_SECONDS)
    if not stripe_client.is_configured():
        logger.warning("STRIPE_SECRET_KEY absent: payment references are not verified with Stripe")
    try:
        yield
    finally:
        await client.aclose()
        api_client.set_api_client(None)
        logger.info("Remote API client closed")
