# storefront.config
from decimal import Decimal
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du storefront.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Expose l'URL et le timeout de l'API distante (panier, coupons, commandes, rendez-vous)
- Expose les constantes de tarification (TVA, livraison, taux USD/BDT, créneaux)
- Normalise et expose les secrets (Stripe, Supabase), CORS/hosts
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _decimal_env(name: str, default: str) -> Decimal:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return Decimal(raw) if raw else Decimal(default)
    except Exception:
        return Decimal(default)

# API distante (source de vérité du panier, des coupons, du registre des commandes)
# - REMOTE_API_URL peut être fourni sans schéma: on préfixe en http:// si nécessaire
REMOTE_API_URL = _clean_env(os.getenv("REMOTE_API_URL") or "http://localhost:3000")
if not REMOTE_API_URL.startswith("http"):
    REMOTE_API_URL = "http://" + REMOTE_API_URL
REMOTE_API_URL = REMOTE_API_URL.rstrip("/")

# Aucun retry automatique: un timeout donne RemoteUnavailable
REMOTE_TIMEOUT_SECONDS = float(_clean_env(os.getenv("REMOTE_TIMEOUT_SECONDS") or "20") or 20)

# Tarification (montants en BDT, devise d'affichage)
TAX_RATE = _decimal_env("TAX_RATE", "0.05")
SHIPPING_FEE_BDT = _decimal_env("SHIPPING_FEE_BDT", "60")
USD_TO_BDT_RATE = _decimal_env("USD_TO_BDT_RATE", "120")

# Rendez-vous vétérinaires
SLOT_MINUTES = int(_clean_env(os.getenv("SLOT_MINUTES") or "30") or 30)
DEFAULT_CONSULTATION_FEE_BDT = _decimal_env("DEFAULT_CONSULTATION_FEE_BDT", "800")
DEFAULT_AVAILABLE_START = _clean_env(os.getenv("DEFAULT_AVAILABLE_START") or "09:00")
DEFAULT_AVAILABLE_END = _clean_env(os.getenv("DEFAULT_AVAILABLE_END") or "17:00")

# Supabase: résolution du token utilisateur (identité externe)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON_KEY = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Stripe: vérification des paiements et webhook
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")

# Paiements matérialisés gardés en mémoire (les plus anciens sont oubliés)
MATERIALIZED_CACHE_SIZE = int(_clean_env(os.getenv("MATERIALIZED_CACHE_SIZE") or "10000") or 10000)

# Sessions BFF inactives fermées après ce délai (secondes)
SESSION_IDLE_TIMEOUT_SECONDS = float(_clean_env(os.getenv("SESSION_IDLE_TIMEOUT_SECONDS") or "3600") or 3600)

# Cookies / session
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]
