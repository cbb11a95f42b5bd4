# Guard de rutas: corre antes de servir cualquier página.
#
# Es solo un atajo de UX (presencia/valor de cookies). NO valida la firma
# de la sesión: el backend Java rechaza sesiones viejas en la siguiente
# llamada proxy.

import logging
from typing import Mapping, Optional
from urllib.parse import urlencode

from config import SESSION_COOKIE_NAME, USER_ID_COOKIE, USER_STATUS_COOKIE

log = logging.getLogger("uvicorn.error")

PROTECTED_ROUTES = ("/cart", "/checkout", "/profile", "/wish-list")
AUTH_ROUTES = ("/login", "/sign-in", "/sign-up", "/email-verification")
BYPASS_PREFIXES = ("/api", "/static", "/_next", "/favicon.ico", "/ping")

SIGN_IN_PATH = "/sign-in"
HOME_PATH = "/"


def _matches(path: str, routes) -> bool:
    # "/cart" y "/cart/..." sí; "/cartoon" no
    return any(path == r or path.startswith(r + "/") for r in routes)


def classify(path: str) -> str:
    """'protected' | 'auth' | 'public'."""
    if _matches(path, PROTECTED_ROUTES):
        return "protected"
    if _matches(path, AUTH_ROUTES):
        return "auth"
    return "public"


def is_verified(cookies: Mapping[str, str]) -> bool:
    """Las tres cookies presentes y user_status exactamente 'verified'."""
    try:
        return bool(
            cookies.get(SESSION_COOKIE_NAME)
            and cookies.get(USER_ID_COOKIE)
            and cookies.get(USER_STATUS_COOKIE) == "verified"
        )
    except Exception:
        # ante cualquier rareza leyendo cookies: tratamos como NO verificado
        log.warning("[guard] error leyendo cookies, se asume no verificado", exc_info=True)
        return False


def guard_redirect(path: str, cookies: Mapping[str, str]) -> Optional[str]:
    """
    Devuelve la URL a la que redirigir, o None para dejar pasar.
    - Ruta protegida sin sesión verificada -> /sign-in?redirect=<path>
    - Ruta de auth con sesión verificada   -> /
    """
    if path.startswith(BYPASS_PREFIXES):
        return None

    kind = classify(path)
    if kind == "public":
        return None

    verified = is_verified(cookies)
    if kind == "protected" and not verified:
        log.info(f"[guard] {path} sin sesión verificada -> {SIGN_IN_PATH}")
        return f"{SIGN_IN_PATH}?{urlencode({'redirect': path}, safe='/')}"
    if kind == "auth" and verified:
        log.info(f"[guard] {path} con sesión activa -> {HOME_PATH}")
        return HOME_PATH
    return None
