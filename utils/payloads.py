# ------------------------------------------------------------
# Normalización de respuestas del backend Java.
#
# El backend no tiene un contrato fijo: cada servlet devuelve su forma.
# Aquí se convierten a los tipos de models.py; lo que no encaja se
# descarta (con warning) o se rellena con defaults. Nunca se pasa crudo.
# ------------------------------------------------------------

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from models import AddressData, CartItem, WishlistItem, cart_count, cart_total, dump_items
from services.backend import UpstreamMalformed, UpstreamRejected, NotAuthenticated

log = logging.getLogger("uvicorn.error")


def _as_dict(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise UpstreamMalformed(f"Unexpected {what} response from backend")
    return raw


# ============ Carrito ============

def normalize_cart(raw: Any) -> Dict[str, Any]:
    """
    GetCart -> {"items": [...], "count": n, "totalPrice": x}
    count y total se recalculan siempre desde la lista.
    """
    data = _as_dict(raw, "cart")
    if data.get("success") is False:
        raise UpstreamRejected(data.get("error") or data.get("message") or "Failed to fetch cart")

    cart_data = data.get("cartData") or {}
    raw_items = cart_data.get("items") if isinstance(cart_data, dict) else None
    items: List[CartItem] = []
    for it in raw_items or []:
        try:
            items.append(CartItem.model_validate(it))
        except PydanticValidationError:
            log.warning(f"[cart] item descartado por forma inválida: {it!r}")
    return {
        "items": dump_items(items),
        "count": cart_count(items),
        "totalPrice": cart_total(items),
    }


def normalize_ack(default_error: str):
    """Servlets que contestan {"status"|"success": bool, "message": str}. Sin flag = OK."""
    def _shape(raw: Any) -> Dict[str, Any]:
        data = _as_dict(raw, "status")
        ok = data.get("success", data.get("status", True))
        if not ok:
            raise UpstreamRejected(data.get("message") or data.get("error") or default_error)
        return {"message": data.get("message")}
    return _shape


# ============ Wishlist ============

def normalize_wishlist(raw: Any) -> Dict[str, Any]:
    """
    GetWishlist -> {"items": [...], "count": n}
    status=false (p.ej. sin sesión) se interpreta como wishlist vacía.
    """
    data = _as_dict(raw, "wishlist")
    if not data.get("status"):
        return {"items": [], "count": 0}

    items: List[WishlistItem] = []
    for it in data.get("items") or []:
        if not isinstance(it, dict):
            continue
        try:
            items.append(WishlistItem.model_validate({
                "id": it.get("wishlistId"),
                "product": {
                    "id": it.get("productId"),
                    "name": it.get("name") or "",
                    "basePrice": it.get("basePrice") or 0,
                    "imageUrls": it.get("images") or [],
                    "description": it.get("description"),
                    "category": it.get("category"),
                },
                "user": {"id": str(it["userId"]) if it.get("userId") is not None else None},
            }))
        except PydanticValidationError:
            log.warning(f"[wishlist] item descartado por forma inválida: {it!r}")
    return {"items": dump_items(items), "count": len(items)}


# ============ Usuario ============

def _named_list(values: Any) -> List[Dict[str, str]]:
    # GetProvince/GetCities devuelven ["Western", "Central", ...]
    if not isinstance(values, list):
        return []
    return [{"id": str(i + 1), "name": str(v)} for i, v in enumerate(values)]


def normalize_userinfo(raw: Any, provinces: Any = None, cities: Any = None) -> Dict[str, Any]:
    data = _as_dict(raw, "user info")
    if data.get("authenticated") is not True:
        raise NotAuthenticated("User not authenticated")

    first = data.get("first_name") or ""
    last = data.get("last_name") or ""
    return {
        "id": data.get("user_id"),
        "name": f"{first} {last}".strip(),
        "email": data.get("email"),
        "firstName": first,
        "lastName": last,
        "province": data.get("province"),
        "city": data.get("city"),
        "postalCode": data.get("postal_code") or data.get("postalCode"),
        "address": data.get("address"),
        "verificationRequired": bool(data.get("verification_required")),
        "status": data.get("status"),
        "authenticated": True,
        "provinces": _named_list(provinces),
        "cities": _named_list(cities),
    }


def normalize_address(raw: Any) -> Dict[str, str]:
    """UpdateAddress (GET). Si no hay dirección guardada: dirección vacía."""
    if isinstance(raw, dict) and raw.get("status") == "success" and isinstance(raw.get("address"), dict):
        fields = {k: str(v) for k, v in raw["address"].items() if v is not None}
        return AddressData.model_validate(fields).model_dump()
    return AddressData().model_dump()


def normalize_products(raw: Any) -> Any:
    """
    GetProducts / ProductsForCategory / SingleProduct.
    Se mantiene la forma del backend ({"products": [...]} o {"product": {...}})
    pero se exige un objeto JSON.
    """
    data = _as_dict(raw, "products")
    if data.get("success") is False:
        raise UpstreamRejected(data.get("error") or "Failed to fetch products")
    return data
