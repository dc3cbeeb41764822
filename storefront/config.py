# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service storefront.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, service de paiement, Xendit, Turnstile)
- Expose les drapeaux de maintenance et les liens marketplace
- Les vues lisent ces valeurs via `config.X` au moment de l'appel (monkeypatch en tests)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

def _base_url(v: str) -> str:
    v = _clean_env(v)
    if v and not v.startswith("http"):
        v = "https://" + v
    return v.rstrip("/")

# Supabase: URL et clés (anon / service role)
# - SUPABASE_URL peut venir de la variable Vite du front (VITE_SUPABASE_URL)
SUPABASE_URL = _base_url(os.getenv("SUPABASE_URL") or os.getenv("VITE_SUPABASE_URL") or "")
SUPABASE_ANON_KEY = _clean_env(
    os.getenv("SUPABASE_ANON_KEY") or os.getenv("VITE_SUPABASE_PUBLISHABLE_KEY") or ""
)
SUPABASE_SERVICE_ROLE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "")

# Service de paiement (create-session) et clé de service partagée
PAYMENT_API_URL = _base_url(os.getenv("PAYMENT_API_URL") or os.getenv("SERVICE_API_URL") or "https://api.regalpaw.id")
SERVICE_API_KEY = _clean_env(os.getenv("SERVICE_API_KEY") or "")

# Passerelle Xendit (côté service de paiement)
XENDIT_SECRET_KEY = _clean_env(os.getenv("XENDIT_SECRET_KEY") or "")
XENDIT_BASE_URL = _base_url(os.getenv("XENDIT_BASE_URL") or "https://api.xendit.co")
PAYMENT_RETURN_URL = _clean_env(os.getenv("PAYMENT_RETURN_URL") or "")
# Jeton des callbacks Xendit (en-tête x-callback-token)
XENDIT_WEBHOOK_TOKEN = _clean_env(os.getenv("XENDIT_WEBHOOK_TOKEN") or os.getenv("XENDIT_CALLBACK_TOKEN") or "")

# Cloudflare Turnstile (CAPTCHA)
TURNSTILE_SECRET = _clean_env(os.getenv("TURNSTILE_SECRET") or "")
TURNSTILE_VERIFY_URL = _clean_env(
    os.getenv("TURNSTILE_VERIFY_URL") or "https://challenges.cloudflare.com/turnstile/v0/siteverify"
)

# Drapeaux de maintenance (sections auth / produits)
MAINTENANCE_AUTH = _flag("MAINTENANCE_AUTH")
MAINTENANCE_PRODUCT = _flag("MAINTENANCE_PRODUCT")

# Liens marketplace externes
SHOPEE_URL = _clean_env(os.getenv("SHOPEE_URL") or "https://shopee.co.id/regalpaw")
TIKTOK_SHOP_URL = _clean_env(os.getenv("TIKTOK_SHOP_URL") or "https://www.tiktok.com/@regalpaw")

# Cookies / CORS / hôtes
COOKIE_SECURE = _flag("COOKIE_SECURE")
REFRESH_COOKIE_NAME = "sb_refresh_token"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Rate limiting (Redis optionnel, sinon mémoire locale)
RATE_LIMIT_REDIS_URL = _clean_env(os.getenv("RATE_LIMIT_REDIS_URL") or "")
# Purge périodique des compteurs mémoire (secondes)
RATE_LIMIT_PURGE_INTERVAL_SECONDS = float(os.getenv("RATE_LIMIT_PURGE_INTERVAL_SECONDS", "1800") or 1800)

# Timeout par défaut des appels sortants (httpx)
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10") or 10)
