# Carrito: proxies hacia los servlets AddToCart / GetCart / UpdateCart / DeleteCart / ClearCart.
# El carrito "de verdad" vive en el backend Java; aquí solo se reenvía y se normaliza.

from fastapi import APIRouter, Depends, Request

from services.backend import BackendClient, ClientInputError, get_backend, require
from utils.cookies import inbound_cookies
from utils.payloads import normalize_ack, normalize_cart
from routers.proxy_helpers import read_json, as_int

router = APIRouter(prefix="/api", tags=["Cart"])


@router.post("/add-to-cart")
async def add_to_cart(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "productId", message="Product ID is required")

    quantity = as_int(payload.get("quantity", 1), "quantity")
    if quantity <= 0:
        raise ClientInputError("quantity must be a positive integer")

    result = await backend.proxy(
        "POST", "/AddToCart",
        cookies=inbound_cookies(request),
        forward_user=True,
        json={
            "productId": as_int(payload["productId"], "productId"),
            "quantity": quantity,
            "colorId": as_int(payload.get("colorId", 1), "colorId"),
        },
        shape=normalize_ack("Failed to add product to cart"),
        error_message="Failed to add product to cart",
    )
    return result.to_response()


@router.get("/get-cart")
async def get_cart(request: Request, backend: BackendClient = Depends(get_backend)):
    result = await backend.proxy(
        "GET", "/GetCart",
        cookies=inbound_cookies(request),
        shape=normalize_cart,
        error_message="Failed to fetch cart",
    )
    return result.to_response()


@router.put("/update-cart")
async def update_cart(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "cartItemId", "quantity")

    # qty <= 0 no se convierte en "remove": eso lo decide la UI
    quantity = as_int(payload["quantity"], "quantity")
    if quantity <= 0:
        raise ClientInputError("quantity must be a positive integer")

    result = await backend.proxy(
        "PUT", "/UpdateCart",
        cookies=inbound_cookies(request),
        forward_user=True,
        json={"cartItemId": as_int(payload["cartItemId"], "cartItemId"), "quantity": quantity},
        shape=normalize_ack("Failed to update cart"),
        error_message="Failed to update cart",
    )
    return result.to_response()


@router.post("/delete-cart")
async def delete_cart(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "cartItemId")  # 0 es un id válido

    result = await backend.proxy(
        "POST", "/DeleteCart",
        cookies=inbound_cookies(request),
        forward_user=True,
        json={"cartItemId": as_int(payload["cartItemId"], "cartItemId")},
        shape=normalize_ack("Failed to delete cart item"),
        error_message="Failed to delete cart item",
    )
    return result.to_response()


@router.post("/clear-cart-after-payment")
async def clear_cart_after_payment(request: Request, backend: BackendClient = Depends(get_backend)):
    """
    Lo llama la página de éxito del checkout al volver de Stripe.
    El webhook también limpia el carrito (ver routers/billing.py).
    """
    payload = await read_json(request)
    cookies = inbound_cookies(request)

    result = await backend.proxy(
        "POST", "/ClearCart",
        cookies=cookies,
        json={
            "userId": payload.get("userId") or cookies.get("user_id"),
            "sessionId": payload.get("sessionId"),
            "action": "clear_cart_after_payment",
        },
        shape=normalize_ack("Failed to clear cart"),
        error_message="Failed to clear cart",
    )
    return result.to_response()
