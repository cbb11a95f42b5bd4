"""
Resource Proxy: una intención de la UI -> UNA llamada al backend Java.

Contrato (igual para todas las rutas /api/*):
- Parámetros obligatorios ausentes -> ClientInputError (400), sin llamada de red.
- Falla de red -> UpstreamUnavailable (500).
- Backend con status no-2xx -> success=False y se respeta su status.
- Cuerpo que no es JSON (p.ej. página HTML de Tomcat) -> UpstreamMalformed (500)
  con mensaje genérico.
- Nunca se propaga una excepción más allá de `BackendClient.proxy`:
  siempre vuelve un ProxyResult.
- Si el backend renueva la cookie de sesión (Set-Cookie), se reenvía al navegador.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from config import BACKEND_BASE_URL, BACKEND_TIMEOUT_S, USER_ID_COOKIE
from utils.cookies import cookie_header, relay_session_cookie, session_from_set_cookie

log = logging.getLogger("uvicorn.error")

GENERIC_ERROR = "Internal server error"
MALFORMED_ERROR = "Invalid response from backend"
UNAVAILABLE_ERROR = "Failed to connect to backend"


# ==========================
# Errores
# ==========================

class ProxyError(Exception):
    status_code = 500

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message or "")
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClientInputError(ProxyError):
    status_code = 400


class NotAuthenticated(ProxyError):
    status_code = 401


class UpstreamUnavailable(ProxyError):
    status_code = 500


class UpstreamMalformed(ProxyError):
    status_code = 500


class UpstreamRejected(ProxyError):
    """El backend respondió 2xx pero con status=false."""
    status_code = 400


def require(payload: Dict[str, Any], *fields: str, message: Optional[str] = None) -> None:
    """Lanza ClientInputError si falta algún campo (0 cuenta como presente)."""
    missing = [f for f in fields if payload.get(f) is None or payload.get(f) == ""]
    if missing:
        raise ClientInputError(message or f"{', '.join(missing)} is required")


# ==========================
# Resultado uniforme
# ==========================

@dataclass
class BackendReply:
    status_code: int
    data: Any
    session_cookie: Optional[str] = None


@dataclass
class ProxyResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: int = 200
    session_cookie: Optional[str] = None

    @classmethod
    def fail(cls, error: str, status_code: int = 500) -> "ProxyResult":
        return cls(success=False, error=error, status_code=status_code)

    @classmethod
    def from_error(cls, exc: ProxyError, default_message: str) -> "ProxyResult":
        return cls.fail(exc.message or default_message, exc.status_code)

    def body(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
        return out

    def to_response(self) -> JSONResponse:
        response = JSONResponse(self.body(), status_code=self.status_code)
        relay_session_cookie(response, self.session_cookie)
        return response


# ==========================
# Cliente del backend
# ==========================

def _error_message(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        msg = data.get("error") or data.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg
    return None


class BackendClient:
    """Envuelve un httpx.AsyncClient compartido (se crea en el lifespan de main.py)."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    @classmethod
    def from_config(cls) -> "BackendClient":
        return cls(httpx.AsyncClient(base_url=BACKEND_BASE_URL, timeout=BACKEND_TIMEOUT_S))

    async def aclose(self) -> None:
        await self.http.aclose()

    def _headers(self, cookies: Dict[str, str], forward_user: bool) -> Dict[str, str]:
        h: Dict[str, str] = {"Accept": "application/json"}
        if cookies:
            h["Cookie"] = cookie_header(cookies)
        if forward_user and cookies.get(USER_ID_COOKIE):
            h["X-User-Id"] = cookies[USER_ID_COOKIE]
        return h

    async def _send(self, method: str, path: str, retries: int, **kwargs) -> httpx.Response:
        attempt = 0
        while True:
            try:
                return await self.http.request(method, path, **kwargs)
            except httpx.TransportError as e:
                if attempt >= retries:
                    log.warning(f"[backend] {method} {path} falló: {e!r}")
                    raise UpstreamUnavailable(UNAVAILABLE_ERROR) from e
                attempt += 1
                log.info(f"[backend] {method} {path} reintento {attempt} tras {e!r}")
            except httpx.HTTPError as e:
                log.warning(f"[backend] {method} {path} falló: {e!r}")
                raise UpstreamUnavailable(UNAVAILABLE_ERROR) from e

    async def call(
        self,
        method: str,
        path: str,
        *,
        cookies: Optional[Dict[str, str]] = None,
        json: Any = None,
        form: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        forward_user: bool = False,
        idempotent: Optional[bool] = None,
        expect_json: bool = True,
    ) -> BackendReply:
        """
        Una llamada al servlet. Lanza ProxyError; el que quiera el sobre
        uniforme usa `proxy()`.

        Solo las lecturas (GET, o idempotent=True) se reintentan una vez ante
        errores de transporte. Las mutaciones nunca.
        """
        cookies = cookies or {}
        if idempotent is None:
            idempotent = method.upper() in ("GET", "HEAD")

        kwargs: Dict[str, Any] = {"headers": self._headers(cookies, forward_user)}
        if json is not None:
            kwargs["json"] = json
        if form is not None:
            kwargs["data"] = {k: str(v) for k, v in form.items()}
        if params:
            kwargs["params"] = params

        res = await self._send(method, path, 1 if idempotent else 0, **kwargs)
        log.info(f"[backend] {method} {path} -> {res.status_code}")

        renewed = session_from_set_cookie(res.headers.get_list("set-cookie"))

        text = res.text
        if not expect_json:
            data: Any = text
        else:
            try:
                data = res.json() if text.strip() else None
            except ValueError:
                # p.ej. página de error HTML
                log.warning(f"[backend] {path} no devolvió JSON ({res.status_code}): {text[:500]!r}")
                raise UpstreamMalformed(MALFORMED_ERROR)
            if data is None and res.is_success:
                raise UpstreamMalformed("Empty response from backend")

        if not res.is_success:
            raise UpstreamUnavailable(_error_message(data), status_code=res.status_code)

        return BackendReply(status_code=res.status_code, data=data, session_cookie=renewed)

    async def proxy(
        self,
        method: str,
        path: str,
        *,
        error_message: str = GENERIC_ERROR,
        shape: Optional[Callable[[Any], Any]] = None,
        **kwargs,
    ) -> ProxyResult:
        """`call()` + normalización + conversión de cualquier error al sobre uniforme."""
        try:
            reply = await self.call(method, path, **kwargs)
            data = shape(reply.data) if shape else reply.data
        except ProxyError as e:
            log.warning(f"[proxy] {path}: {type(e).__name__} {e.status_code} {e.message or ''}")
            return ProxyResult.from_error(e, error_message)
        except Exception:
            log.exception(f"[proxy] {path}: error inesperado")
            return ProxyResult.fail(error_message, 500)
        return ProxyResult(
            success=True,
            data=data,
            status_code=reply.status_code,
            session_cookie=reply.session_cookie,
        )


# ==========================
# Dependencia FastAPI
# ==========================

def get_backend(request: Request) -> BackendClient:
    """
    Dependencia típica de FastAPI. El cliente vive en app.state (lifespan).

    @router.get("/algo")
    async def algo(backend: BackendClient = Depends(get_backend)):
        ...
    """
    return request.app.state.backend
