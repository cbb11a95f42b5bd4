from fastapi import APIRouter, Depends, Request

from services.backend import BackendClient, get_backend, require
from utils.cookies import inbound_cookies
from utils.payloads import normalize_ack, normalize_wishlist
from routers.proxy_helpers import read_json, as_int

router = APIRouter(prefix="/api", tags=["Wishlist"])


@router.post("/add-to-wishlist")
async def add_to_wishlist(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "productId", message="Product ID is required")

    # el servlet WishList espera form-urlencoded
    result = await backend.proxy(
        "POST", "/WishList",
        cookies=inbound_cookies(request),
        form={"productId": as_int(payload["productId"], "productId")},
        shape=normalize_ack("Failed to add product to wishlist"),
        error_message="Failed to add product to wishlist",
    )
    return result.to_response()


@router.post("/get-wishlist")
async def get_wishlist(request: Request, backend: BackendClient = Depends(get_backend)):
    # POST en el backend, pero es una lectura: se puede reintentar
    result = await backend.proxy(
        "POST", "/GetWishlist",
        cookies=inbound_cookies(request),
        json={},
        idempotent=True,
        shape=normalize_wishlist,
        error_message="Failed to fetch wishlist",
    )
    return result.to_response()


@router.post("/remove-from-wishlist")
async def remove_from_wishlist(request: Request, backend: BackendClient = Depends(get_backend)):
    payload = await read_json(request)
    require(payload, "wishlistItemId", message="Wishlist item ID is required")

    result = await backend.proxy(
        "POST", "/RemoveWishlist",
        cookies=inbound_cookies(request),
        form={"wishlistId": as_int(payload["wishlistItemId"], "wishlistItemId")},
        shape=normalize_ack("Failed to remove from wishlist"),
        error_message="Failed to remove from wishlist",
    )
    return result.to_response()
