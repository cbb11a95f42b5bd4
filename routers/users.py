# ------------------------------------------------------------
# Perfil del usuario: info, dirección, contraseña y órdenes.
# - Todo es "user-scoped": si el backend dice authenticated=false -> 401.
# - Provincias/ciudades son un extra: si fallan, se devuelven listas vacías.
# ------------------------------------------------------------

import logging

from fastapi import APIRouter, Depends, Request

from services.backend import (
    BackendClient,
    ProxyError,
    ProxyResult,
    get_backend,
    UNAVAILABLE_ERROR,
)
from utils.cookies import inbound_cookies
from utils.payloads import normalize_ack, normalize_address, normalize_userinfo
from utils.validators import validate_address
from routers.proxy_helpers import read_json

router = APIRouter(prefix="/api", tags=["Users"])
log = logging.getLogger("uvicorn.error")


async def _optional_list(backend: BackendClient, path: str, cookies):
    try:
        reply = await backend.call("GET", path, cookies=cookies)
        return reply.data
    except ProxyError as e:
        log.warning(f"[userinfo] {path} no disponible: {e.status_code}")
        return []


# ========== USER INFO ==========

@router.api_route("/userinfo", methods=["GET", "POST"])
async def userinfo(request: Request, backend: BackendClient = Depends(get_backend)):
    cookies = inbound_cookies(request)
    try:
        reply = await backend.call("GET", "/UserInfo", cookies=cookies)
        provinces = await _optional_list(backend, "/GetProvince", cookies)
        cities = await _optional_list(backend, "/GetCities", cookies)
        data = normalize_userinfo(reply.data, provinces, cities)
    except ProxyError as e:
        return ProxyResult.from_error(e, "Failed to fetch user info from backend").to_response()

    return ProxyResult(True, data, session_cookie=reply.session_cookie).to_response()


# ========== DIRECCIÓN ==========

@router.get("/user-address")
async def user_address(request: Request, backend: BackendClient = Depends(get_backend)):
    cookies = inbound_cookies(request)
    try:
        reply = await backend.call("GET", "/UserInfo", cookies=cookies)
        normalize_userinfo(reply.data)  # solo para el 401
    except ProxyError as e:
        return ProxyResult.from_error(e, "Failed to fetch user info from backend").to_response()

    # Sin dirección guardada (o servlet caído) -> dirección vacía
    try:
        addr = await backend.call("GET", "/UpdateAddress", cookies=cookies)
        address = normalize_address(addr.data)
    except ProxyError as e:
        log.info(f"[user-address] sin dirección ({e.status_code}), se usa la vacía")
        address = normalize_address(None)

    return ProxyResult(True, {"address": address, "authenticated": True}).to_response()


@router.api_route("/update-address", methods=["PUT", "POST"])
async def update_address(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    validate_address(payload)  # ValidationError -> 400 con errores por campo

    result = await backend.proxy(
        "POST", "/UpdateAddress",
        cookies=inbound_cookies(request),
        json=payload,
        shape=normalize_ack("Failed to update address in backend"),
        error_message="Failed to update address in backend",
    )
    return result.to_response()


# ========== PASSWORD ==========

@router.post("/update-password")
async def update_password(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    result = await backend.proxy(
        "POST", "/UpdateUserPassword",
        cookies=inbound_cookies(request),
        json=payload,
        shape=normalize_ack("Failed to update password"),
        error_message=UNAVAILABLE_ERROR,
    )
    return result.to_response()


# ========== ÓRDENES ==========

@router.get("/get-user-orders")
async def get_user_orders(request: Request, backend: BackendClient = Depends(get_backend)):
    result = await backend.proxy(
        "GET", "/GetOdersForUser",
        cookies=inbound_cookies(request),
        error_message=UNAVAILABLE_ERROR,
    )
    return result.to_response()
