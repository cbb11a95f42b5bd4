import httpx
import pytest
from fastapi.testclient import TestClient

import main
from client.api import ApiResult
from services.backend import BackendClient, get_backend

BACKEND_URL = "http://backend.test/kaidenz"


class FakeBackend:
    """
    Backend Java falso para httpx.MockTransport.
    Las respuestas se registran por nombre de servlet ("GetCart", "SignIn", ...).
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, servlet, response):
        # response: httpx.Response o callable(request) -> httpx.Response
        self.routes[servlet] = response

    def calls_to(self, servlet):
        return [r for r in self.calls if r.url.path.rsplit("/", 1)[-1] == servlet]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        servlet = request.url.path.rsplit("/", 1)[-1]
        response = self.routes.get(servlet)
        if response is None:
            return httpx.Response(404, json={"error": f"{servlet} not mocked"})
        if callable(response):
            return response(request)
        return response


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    http = httpx.AsyncClient(base_url=BACKEND_URL, transport=httpx.MockTransport(backend))
    main.app.dependency_overrides[get_backend] = lambda: BackendClient(http)
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


CART_ITEM = {
    "id": 7,
    "product": {"id": 11, "name": "Linen Shirt", "basePrice": 20.0, "imageUrls": ["https://img/1.jpg"]},
    "color": {"id": 2, "name": "Blue"},
    "qty": 2,
}


@pytest.fixture
def cart_item():
    return dict(CART_ITEM)


@pytest.fixture
def login(client):
    def _login(verified=True):
        client.cookies.set("JSESSIONID", "SESSION123")
        client.cookies.set("user_id", "user_abc")
        client.cookies.set("user_status", "verified" if verified else "unverified")
    return _login


# ---------- API falsa para los stores del cliente ----------

class FakeStoreApi:
    """
    Reemplaza a StorefrontAPI con un "servidor" en memoria.
    - fail: claves de operación que fallan ("update:7", "get_cart", ...)
    - gates: clave -> asyncio.Event; la llamada espera hasta que se libere (un solo uso)
    """

    def __init__(self):
        self.cart = {}
        self.wishlist = {}
        self.authenticated = True
        self.fail = set()
        self.gates = {}
        self.calls = []
        self.checkout_payloads = []
        self._next_id = 100

    def put_cart(self, *items):
        for it in items:
            self.cart[it["id"]] = dict(it)

    async def _gate(self, key):
        self.calls.append(key)
        gate = self.gates.pop(key, None)
        if gate is not None:
            await gate.wait()
        return key in self.fail

    async def check_session(self):
        self.calls.append("check_session")
        return {"hasUser": self.authenticated, "sessionId": "SESSION123" if self.authenticated else None}

    # --- carrito ---

    async def get_cart(self):
        # la foto del servidor se toma al recibir la petición
        items = [dict(it) for it in self.cart.values()]
        if await self._gate("get_cart"):
            return ApiResult(False, error="Failed to fetch cart", status_code=500)
        return ApiResult(True, {"items": items, "count": sum(i["qty"] for i in items)}, status_code=200)

    async def add_to_cart(self, product_id, quantity=1, color_id=1):
        if await self._gate("add"):
            return ApiResult(False, error="Failed to add product to cart", status_code=500)
        self._next_id += 1
        self.cart[self._next_id] = {
            "id": self._next_id,
            "product": {"id": product_id, "name": f"Product {product_id}", "basePrice": 10.0},
            "color": {"id": color_id, "name": ""},
            "qty": quantity,
        }
        return ApiResult(True, {"message": "Added"}, status_code=200)

    async def update_cart_item(self, item_id, quantity):
        if await self._gate(f"update:{item_id}"):
            return ApiResult(False, error="Failed to update cart", status_code=500)
        self.cart[item_id]["qty"] = quantity
        return ApiResult(True, {"message": "Updated"}, status_code=200)

    async def delete_cart_item(self, item_id):
        if await self._gate(f"delete:{item_id}"):
            return ApiResult(False, error="Failed to delete cart item", status_code=500)
        self.cart.pop(item_id, None)
        return ApiResult(True, {"message": "Deleted"}, status_code=200)

    async def clear_cart_after_payment(self, user_id=None, session_id=None):
        if await self._gate("clear"):
            return ApiResult(False, error="Failed to clear cart", status_code=500)
        self.cart.clear()
        return ApiResult(True, {"message": "Cleared"}, status_code=200)

    # --- wishlist ---

    async def get_wishlist(self):
        items = [dict(it) for it in self.wishlist.values()]
        if await self._gate("get_wishlist"):
            return ApiResult(False, error="Failed to fetch wishlist", status_code=500)
        return ApiResult(True, {"items": items, "count": len(items)}, status_code=200)

    async def add_to_wishlist(self, product_id):
        if await self._gate("wish_add"):
            return ApiResult(False, error="Failed to add product to wishlist", status_code=400)
        self._next_id += 1
        self.wishlist[self._next_id] = {
            "id": self._next_id,
            "product": {"id": product_id, "name": f"Product {product_id}"},
            "user": {"id": "user_abc"},
        }
        return ApiResult(True, {"message": "Added"}, status_code=200)

    async def remove_from_wishlist(self, wishlist_item_id):
        if await self._gate("wish_remove"):
            return ApiResult(False, error="Failed to remove from wishlist", status_code=400)
        self.wishlist.pop(wishlist_item_id, None)
        return ApiResult(True, {"message": "Removed"}, status_code=200)

    # --- checkout ---

    async def create_checkout_session(self, cart_data, shipping):
        self.checkout_payloads.append({"cartData": cart_data, "shippingData": shipping})
        if await self._gate("checkout"):
            return ApiResult(False, error="Failed to create checkout session", status_code=500)
        return ApiResult(True, {"sessionId": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1"})

    async def get_session_details(self, session_id):
        if await self._gate("session_details"):
            return ApiResult(False, error="Session not found", status_code=404)
        return ApiResult(True, {"orderDetails": {"orderId": "ORD-1", "sessionId": session_id, "userId": "user_abc"}})


@pytest.fixture
def fake_api():
    return FakeStoreApi()
