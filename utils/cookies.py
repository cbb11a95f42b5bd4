# Relay de la cookie de sesión entre el navegador y el backend Java.
#
# - La cookie entra por el request (dict de cookies) y se reenvía tal cual.
# - Si el backend emite una nueva (renovación), se vuelve a emitir en la
#   respuesta hacia el navegador para el dominio del storefront. Si la
#   borra, se borra también en el navegador.
# - Nada de estado global: todo se pasa como parámetro.

import re
from typing import Dict, Iterable, Optional
from urllib.parse import unquote

from fastapi import Request, Response

from config import (
    SESSION_COOKIE_NAME,
    USER_ID_COOKIE,
    USER_STATUS_COOKIE,
    COOKIE_MAX_AGE,
    COOKIE_SECURE,
    COOKIE_SAMESITE,
)

UI_COOKIES = (USER_ID_COOKIE, USER_STATUS_COOKIE, "user_email", "user_first_name", "user_last_name")


def inbound_cookies(request: Request) -> Dict[str, str]:
    """Cookies del navegador, ya decodificadas."""
    return {k: unquote(v) for k, v in request.cookies.items()}


def cookie_header(cookies: Dict[str, str]) -> str:
    return "; ".join(f"{k}={v}" for k, v in cookies.items())


# Valor que devuelve session_from_set_cookie cuando el backend borra la sesión
SESSION_CLEARED = ""

_EXPIRED = re.compile(r";\s*(?:max-age\s*=\s*(?:0|-\d+)|expires\s*=[^;]*\b1970\b[^;]*)\s*(?:;|$)", re.IGNORECASE)


def session_from_set_cookie(set_cookie_headers: Iterable[str], name: str = SESSION_COOKIE_NAME) -> Optional[str]:
    """
    Busca la cookie de sesión en TODOS los Set-Cookie del backend
    (no solo en el primero). Devuelve None si no viene y SESSION_CLEARED
    si solo viene vacía o expirada (sesión invalidada).
    """
    pattern = re.compile(rf"(?:^|[\s,;]){re.escape(name)}=([^;]*)")
    cleared = False
    for raw in set_cookie_headers:
        m = pattern.search(raw)
        if not m:
            continue
        value = m.group(1).strip()
        if value not in ("", '""') and not _EXPIRED.search(raw):
            return value
        cleared = True
    return SESSION_CLEARED if cleared else None


def set_session_cookie(response: Response, value: str) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        value,
        max_age=COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
    )


def relay_session_cookie(response: Response, value: Optional[str]) -> None:
    """Reemite (o borra) en el navegador lo que el backend hizo con su cookie."""
    if value is None:
        return
    if value == SESSION_CLEARED:
        response.delete_cookie(
            SESSION_COOKIE_NAME,
            path="/",
            httponly=True,
            secure=COOKIE_SECURE,
            samesite=COOKIE_SAMESITE,
        )
    else:
        set_session_cookie(response, value)


def set_ui_cookie(response: Response, name: str, value) -> None:
    # Cookies de conveniencia para la UI (no sensibles, legibles desde JS)
    response.set_cookie(
        name,
        str(value),
        max_age=COOKIE_MAX_AGE,
        path="/",
        httponly=False,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
    )


def set_login_cookies(response: Response, data: dict) -> None:
    """
    Cookies para el front tras un signin correcto.
    Solo si el usuario está verificado se exponen email y nombre.
    """
    user_id = data.get("user_id")
    if not (data.get("status") and user_id):
        return

    set_ui_cookie(response, USER_ID_COOKIE, user_id)
    verified = not data.get("verification_required")
    set_ui_cookie(response, USER_STATUS_COOKIE, "verified" if verified else "unverified")

    if verified:
        for field, cookie in (
            ("email", "user_email"),
            ("first_name", "user_first_name"),
            ("last_name", "user_last_name"),
        ):
            if data.get(field):
                set_ui_cookie(response, cookie, data[field])


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    for name in UI_COOKIES:
        response.delete_cookie(name, path="/")
