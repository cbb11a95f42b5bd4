# Session Probe: ¿hay una sesión en el navegador?

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from config import SESSION_COOKIE_NAME
from services.backend import BackendClient, get_backend
from utils.cookies import inbound_cookies

router = APIRouter(prefix="/api", tags=["Session"])


@router.get("/check-session")
def check_session(request: Request):
    """Solo presencia de la cookie, sin llamada de red."""
    session_id = request.cookies.get(SESSION_COOKIE_NAME) or None
    return JSONResponse({"hasUser": bool(session_id), "sessionId": session_id})


@router.post("/cart")
async def check_backend_session(request: Request, backend: BackendClient = Depends(get_backend)):
    """
    Validación real contra el servlet CheckSession.
    Si el backend renueva la sesión, la cookie nueva se reenvía al navegador.
    """
    result = await backend.proxy(
        "POST", "/CheckSession",
        cookies=inbound_cookies(request),
        json={},
        idempotent=True,
        error_message="Invalid request or server error",
    )
    return result.to_response()
