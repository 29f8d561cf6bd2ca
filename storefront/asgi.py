"""
ASGI entrypoint: expose `app` pour les process managers / déploiements.

- En production, un process manager importe `storefront.asgi:app`.
- Toute la configuration FastAPI est centralisée dans storefront.app_setup.factory.
"""

from storefront.app_setup.factory import create_app

app = create_app()
