# Catálogo (solo lectura). No requiere sesión.

from fastapi import APIRouter, Depends, Request

from services.backend import BackendClient, get_backend, require
from utils.payloads import normalize_products

router = APIRouter(prefix="/api", tags=["Products"])


@router.get("/get-products")
async def get_products(backend: BackendClient = Depends(get_backend)):
    result = await backend.proxy(
        "GET", "/GetProducts",
        shape=normalize_products,
        error_message="Failed to fetch products",
    )
    return result.to_response()


@router.get("/get-single-product")
async def get_single_product(request: Request, backend: BackendClient = Depends(get_backend)):
    params = dict(request.query_params)
    require(params, "id", message="Product ID is required")

    result = await backend.proxy(
        "GET", "/SingleProduct",
        params={"id": params["id"]},
        shape=normalize_products,
        error_message="Failed to fetch product",
    )
    return result.to_response()


@router.get("/products-by-category")
async def products_by_category(request: Request, backend: BackendClient = Depends(get_backend)):
    params = dict(request.query_params)
    require(params, "categoryName", message="Category name is required")

    result = await backend.proxy(
        "GET", "/ProductsForCategory",
        params={"categoryName": params["categoryName"]},
        shape=normalize_products,
        error_message="Failed to fetch products",
    )
    return result.to_response()
