from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
import logging, secrets

from config import USER_ID_COOKIE, USER_STATUS_COOKIE
from services.backend import (
    BackendClient,
    ProxyError,
    ProxyResult,
    UpstreamRejected,
    get_backend,
    require,
)
from utils.cookies import (
    inbound_cookies,
    set_login_cookies,
    set_session_cookie,
    set_ui_cookie,
    clear_session_cookies,
)
from routers.proxy_helpers import read_json

router = APIRouter(prefix="/api", tags=["Auth"])
log = logging.getLogger("uvicorn.error")

# Campos del SignIn que la UI necesita; el resto no sale del servidor
SIGNIN_FIELDS = ("user_id", "verification_required", "email", "first_name", "last_name", "message")


def _generate_user_id() -> str:
    return f"user_{secrets.token_hex(6)}"


# ========== SIGNIN ==========
@router.post("/signin")
async def signin(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "email", "password",
            message="Missing required fields: email and password are required")

    # ✅ normaliza email
    email = str(payload["email"]).strip().lower()

    try:
        reply = await backend.call(
            "POST", "/SignIn",
            cookies=inbound_cookies(request),
            json={"email": email, "password": payload["password"]},
        )
        data = reply.data if isinstance(reply.data, dict) else {}
        if not data.get("status"):
            raise UpstreamRejected(data.get("message") or "Invalid credentials", status_code=401)
    except ProxyError as e:
        return ProxyResult.from_error(e, "Invalid request or server error").to_response()

    response = JSONResponse(
        {"success": True, "data": {k: data.get(k) for k in SIGNIN_FIELDS if k in data}},
        status_code=reply.status_code,
    )
    if reply.session_cookie:
        set_session_cookie(response, reply.session_cookie)
    else:
        log.warning("[signin] el backend no devolvió cookie de sesión")
    set_login_cookies(response, data)
    return response


# ========== SIGNUP ==========
@router.post("/signup")
async def signup(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "first_name", "last_name", "email", "password", message="Missing required fields")

    user_id = _generate_user_id()
    try:
        reply = await backend.call(
            "POST", "/SignUp",
            json={
                "first_name": payload["first_name"],
                "last_name": payload["last_name"],
                "email": str(payload["email"]).strip().lower(),
                "password": payload["password"],
                "user_id": user_id,
            },
        )
        data = reply.data if isinstance(reply.data, dict) else {}
        if not data.get("status"):
            raise UpstreamRejected(data.get("message") or "Sign up failed")
    except ProxyError as e:
        return ProxyResult.from_error(e, "Sign up failed").to_response()

    response = JSONResponse(
        {"success": True, "data": {"user_id": user_id, "message": data.get("message")}},
        status_code=reply.status_code,
    )
    # El usuario aún no verificó el email
    set_ui_cookie(response, USER_ID_COOKIE, user_id)
    set_ui_cookie(response, USER_STATUS_COOKIE, "unverified")
    return response


# ========== VERIFICACIÓN EMAIL ==========
@router.post("/verify-email")
async def verify_email(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "user_id", "code", message="Missing required fields")

    result = await backend.proxy(
        "POST", "/VerifyAccount",
        cookies=inbound_cookies(request),
        json={"user_id": payload["user_id"], "code": payload["code"]},
        error_message="Verification failed",
    )
    data = result.data if isinstance(result.data, dict) else {}
    if result.success and not data.get("status", True):
        result = ProxyResult.fail(data.get("message") or "Verification failed", 400)

    response = result.to_response()
    if result.success:
        set_ui_cookie(response, USER_STATUS_COOKIE, "verified")
    return response


# ========== LOGOUT ==========
@router.post("/signout")
async def signout():
    # La sesión del backend caduca sola; aquí solo se limpian cookies del storefront
    response = JSONResponse({"success": True, "data": {"message": "Successfully signed out"}})
    clear_session_cookies(response)
    return response
