import os

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv())

ENV = os.getenv("ENV", "local")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Backend Java (servlets). Todas las rutas /api/* terminan aquí.
BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL", "http://localhost:8080/kaidenz").rstrip("/")
BACKEND_TIMEOUT_S = float(os.getenv("BACKEND_TIMEOUT_S", "10"))

# Base URL pública del storefront (fallback cuando el request no trae Origin)
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://127.0.0.1:8000").rstrip("/")

# Front-end compilado (opcional). Si existe, se sirve en "/"
FRONTEND_DIR = os.getenv("FRONTEND_DIR", "")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

# ==========================
# Cookies
# ==========================
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "JSESSIONID")
USER_ID_COOKIE = "user_id"
USER_STATUS_COOKIE = "user_status"
COOKIE_MAX_AGE = int(os.getenv("COOKIE_MAX_AGE", "3600"))
# En desarrollo va por HTTP, por eso secure=False
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax")

# ==========================
# Stripe
# ==========================
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")
STRIPE_ALLOWED_COUNTRIES = [c.strip() for c in os.getenv("STRIPE_ALLOWED_COUNTRIES", "US,CA,GB,LK").split(",") if c.strip()]

# ==========================
# Correos salientes
# ==========================
EMAIL_DEV_PRINT = os.getenv("EMAIL_DEV_PRINT", "1") == "1"
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
EMAIL_FROM = os.getenv("EMAIL_FROM", SMTP_USER or "Kaidenz <no-reply@kaidenz.local>")
