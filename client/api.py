"""
Cliente async de la API del storefront (/api/*), el equivalente en Python
de los fetch(..., credentials: "include") del navegador.

El httpx.AsyncClient guarda las cookies (JSESSIONID, user_id, ...) igual
que lo haría el navegador. Nunca lanza por errores de red: devuelve
ApiResult(success=False, error="Network error").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

log = logging.getLogger("uvicorn.error")

NETWORK_ERROR = "Network error"


@dataclass
class ApiResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: int = 0
    fields: Dict[str, str] = field(default_factory=dict)


class StorefrontAPI:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    @classmethod
    def connect(cls, base_url: str, cookies: Optional[Dict[str, str]] = None) -> "StorefrontAPI":
        return cls(httpx.AsyncClient(base_url=base_url, cookies=cookies, timeout=15.0))

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _request(self, method: str, path: str, default_error: str, **kwargs) -> ApiResult:
        try:
            res = await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log.warning(f"[api] {method} {path} error de red: {e!r}")
            return ApiResult(False, error=NETWORK_ERROR)

        try:
            body = res.json()
        except ValueError:
            return ApiResult(False, error=default_error, status_code=res.status_code)
        if not isinstance(body, dict):
            return ApiResult(False, error=default_error, status_code=res.status_code)

        success = res.is_success and bool(body.get("success"))
        return ApiResult(
            success=success,
            data=body.get("data"),
            error=None if success else (body.get("error") or default_error),
            status_code=res.status_code,
            fields=body.get("fields") or {},
        )

    # ============ Sesión ============

    async def check_session(self) -> Dict[str, Any]:
        """{hasUser, sessionId}. Cualquier falla -> sin usuario."""
        try:
            res = await self.http.get("/api/check-session")
            data = res.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning(f"[api] check-session falló: {e!r}")
            return {"hasUser": False, "sessionId": None}
        if not res.is_success or not isinstance(data, dict):
            return {"hasUser": False, "sessionId": None}
        return data

    # ============ Carrito ============

    async def get_cart(self) -> ApiResult:
        return await self._request("GET", "/api/get-cart", "Failed to fetch cart")

    async def add_to_cart(self, product_id: int, quantity: int = 1, color_id: int = 1) -> ApiResult:
        return await self._request(
            "POST", "/api/add-to-cart", "Failed to add to cart",
            json={"productId": product_id, "quantity": quantity, "colorId": color_id},
        )

    async def update_cart_item(self, item_id: int, quantity: int) -> ApiResult:
        return await self._request(
            "PUT", "/api/update-cart", "Failed to update cart",
            json={"cartItemId": item_id, "quantity": quantity},
        )

    async def delete_cart_item(self, item_id: int) -> ApiResult:
        return await self._request(
            "POST", "/api/delete-cart", "Failed to remove from cart",
            json={"cartItemId": item_id},
        )

    async def clear_cart_after_payment(self, user_id: Optional[str] = None, session_id: Optional[str] = None) -> ApiResult:
        return await self._request(
            "POST", "/api/clear-cart-after-payment", "Failed to clear cart",
            json={"userId": user_id, "sessionId": session_id},
        )

    # ============ Wishlist ============

    async def get_wishlist(self) -> ApiResult:
        return await self._request("POST", "/api/get-wishlist", "Failed to fetch wishlist")

    async def add_to_wishlist(self, product_id: int) -> ApiResult:
        return await self._request(
            "POST", "/api/add-to-wishlist", "Failed to add to wishlist",
            json={"productId": product_id},
        )

    async def remove_from_wishlist(self, wishlist_item_id: int) -> ApiResult:
        return await self._request(
            "POST", "/api/remove-from-wishlist", "Failed to remove from wishlist",
            json={"wishlistItemId": wishlist_item_id},
        )

    # ============ Checkout ============

    async def create_checkout_session(self, cart_data: Dict[str, Any], shipping: Dict[str, Any]) -> ApiResult:
        return await self._request(
            "POST", "/api/create-checkout-session", "Failed to create checkout session",
            json={"cartData": cart_data, "shippingData": shipping},
        )

    async def get_session_details(self, session_id: str) -> ApiResult:
        return await self._request(
            "GET", "/api/get-session-details", "Failed to retrieve session details",
            params={"session_id": session_id},
        )
