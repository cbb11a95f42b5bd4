import json

import httpx

from services.backend import MALFORMED_ERROR, UNAVAILABLE_ERROR


# ---------- carrito ----------

def test_get_cart_normalizes_items(client, backend, login, cart_item):
    other = dict(cart_item, id=8, qty=1)
    backend.on("GetCart", httpx.Response(200, json={
        "success": True,
        "cartData": {"items": [cart_item, other, {"id": "broken"}]},
    }))
    login()

    res = client.get("/api/get-cart")

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert [it["id"] for it in body["data"]["items"]] == [7, 8]
    assert body["data"]["count"] == 3
    assert body["data"]["totalPrice"] == 60.0
    # la cookie de sesión viaja al backend
    assert "JSESSIONID=SESSION123" in backend.calls[0].headers["cookie"]


def test_html_error_page_becomes_generic_error(client, backend):
    backend.on("GetCart", httpx.Response(200, text="<html><body>Tomcat error</body></html>"))

    res = client.get("/api/get-cart")

    assert res.status_code == 500
    assert res.json() == {"success": False, "error": MALFORMED_ERROR}


def test_missing_product_id_is_rejected_without_network(client, backend):
    res = client.post("/api/add-to-cart", json={"quantity": 1})

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Product ID is required"}
    assert backend.calls == []


def test_update_cart_rejects_zero_quantity(client, backend):
    res = client.put("/api/update-cart", json={"cartItemId": 7, "quantity": 0})

    assert res.status_code == 400
    assert res.json()["success"] is False
    assert backend.calls == []


def test_invalid_json_body(client, backend):
    res = client.post("/api/add-to-cart", content=b"{not json", headers={"content-type": "application/json"})

    assert res.status_code == 400
    assert res.json()["error"] == "Invalid JSON body"
    assert backend.calls == []


def test_add_to_cart_forwards_user_header_and_defaults(client, backend, login):
    backend.on("AddToCart", httpx.Response(200, json={"success": True, "message": "Added"}))
    login()

    res = client.post("/api/add-to-cart", json={"productId": "11"})

    assert res.status_code == 200
    assert res.json() == {"success": True, "data": {"message": "Added"}}
    sent = backend.calls[0]
    assert sent.headers["x-user-id"] == "user_abc"
    assert json.loads(sent.content) == {"productId": 11, "quantity": 1, "colorId": 1}


def test_backend_status_is_kept(client, backend):
    backend.on("UpdateCart", httpx.Response(409, json={"message": "Not enough stock"}))

    res = client.put("/api/update-cart", json={"cartItemId": 7, "quantity": 5})

    assert res.status_code == 409
    assert res.json() == {"success": False, "error": "Not enough stock"}


def test_network_failure_on_read_is_retried_once(client, backend):
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    backend.on("GetCart", boom)

    res = client.get("/api/get-cart")

    assert res.status_code == 500
    assert res.json() == {"success": False, "error": UNAVAILABLE_ERROR}
    assert len(backend.calls_to("GetCart")) == 2


def test_network_failure_on_mutation_is_not_retried(client, backend):
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    backend.on("DeleteCart", boom)

    res = client.post("/api/delete-cart", json={"cartItemId": 0})

    assert res.status_code == 500
    assert len(backend.calls_to("DeleteCart")) == 1


def test_renewed_session_cookie_is_relayed(client, backend):
    backend.on("GetCart", httpx.Response(
        200,
        headers=[
            ("content-type", "application/json"),
            ("set-cookie", "tracking=xyz; Path=/"),
            ("set-cookie", "JSESSIONID=RENEWED42; Path=/kaidenz; HttpOnly"),
        ],
        content=json.dumps({"success": True, "cartData": {"items": []}}).encode(),
    ))

    res = client.get("/api/get-cart")

    assert res.status_code == 200
    relayed = res.headers.get_list("set-cookie")
    assert any(c.startswith("JSESSIONID=RENEWED42") and "HttpOnly" in c for c in relayed)


def test_invalidated_session_cookie_is_cleared_in_browser(client, backend):
    backend.on("GetCart", httpx.Response(
        200,
        headers=[
            ("content-type", "application/json"),
            ("set-cookie", "JSESSIONID=; Path=/kaidenz; Max-Age=0"),
        ],
        content=json.dumps({"success": True, "cartData": {"items": []}}).encode(),
    ))

    res = client.get("/api/get-cart")

    assert res.status_code == 200
    relayed = [c for c in res.headers.get_list("set-cookie") if c.startswith("JSESSIONID=")]
    assert len(relayed) == 1
    assert "Max-Age=0" in relayed[0]


def test_cart_without_set_cookie_leaves_session_alone(client, backend):
    backend.on("GetCart", httpx.Response(200, json={"success": True, "cartData": {"items": []}}))

    res = client.get("/api/get-cart")

    assert not any(c.startswith("JSESSIONID=") for c in res.headers.get_list("set-cookie"))


def test_clear_cart_uses_cookie_user_id(client, backend, login):
    backend.on("ClearCart", httpx.Response(200, json={"success": True}))
    login()

    res = client.post("/api/clear-cart-after-payment", json={"sessionId": "cs_test_1"})

    assert res.json()["success"] is True
    sent = json.loads(backend.calls[0].content)
    assert sent == {"userId": "user_abc", "sessionId": "cs_test_1", "action": "clear_cart_after_payment"}


# ---------- wishlist ----------

def test_wishlist_maps_backend_shape(client, backend):
    backend.on("GetWishlist", httpx.Response(200, json={
        "status": True,
        "items": [{
            "wishlistId": 3, "productId": 11, "name": "Linen Shirt",
            "basePrice": 20, "images": ["https://img/1.jpg"], "userId": 5,
        }],
    }))

    res = client.post("/api/get-wishlist")

    data = res.json()["data"]
    assert data["count"] == 1
    item = data["items"][0]
    assert item["id"] == 3
    assert item["product"]["id"] == 11
    assert item["product"]["imageUrls"] == ["https://img/1.jpg"]
    assert item["user"]["id"] == "5"


def test_wishlist_without_session_is_empty(client, backend):
    backend.on("GetWishlist", httpx.Response(200, json={"status": False, "message": "Please login"}))

    res = client.post("/api/get-wishlist")

    assert res.json() == {"success": True, "data": {"items": [], "count": 0}}


def test_remove_from_wishlist_sends_form(client, backend):
    backend.on("RemoveWishlist", httpx.Response(200, json={"status": True, "message": "Removed"}))

    res = client.post("/api/remove-from-wishlist", json={"wishlistItemId": 3})

    assert res.json()["success"] is True
    sent = backend.calls[0]
    assert sent.headers["content-type"].startswith("application/x-www-form-urlencoded")
    assert sent.content == b"wishlistId=3"


def test_add_to_wishlist_rejected_by_backend(client, backend):
    backend.on("WishList", httpx.Response(200, json={"status": False, "message": "Already in wishlist"}))

    res = client.post("/api/add-to-wishlist", json={"productId": 11})

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Already in wishlist"}


# ---------- productos ----------

def test_single_product_requires_id(client, backend):
    res = client.get("/api/get-single-product")

    assert res.status_code == 400
    assert backend.calls == []


def test_products_by_category_passes_query(client, backend):
    backend.on("ProductsForCategory", httpx.Response(200, json={"products": [{"id": 1}]}))

    res = client.get("/api/products-by-category", params={"categoryName": "Shirts"})

    assert res.json() == {"success": True, "data": {"products": [{"id": 1}]}}
    assert backend.calls[0].url.params["categoryName"] == "Shirts"


# ---------- sesión ----------

def test_check_session_reads_cookie_only(client, backend):
    assert client.get("/api/check-session").json() == {"hasUser": False, "sessionId": None}

    client.cookies.set("JSESSIONID", "SESSION123")
    assert client.get("/api/check-session").json() == {"hasUser": True, "sessionId": "SESSION123"}
    assert backend.calls == []
