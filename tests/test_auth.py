import json

import httpx


def _signin_response(**overrides):
    body = {
        "status": True,
        "user_id": "user_abc",
        "verification_required": False,
        "email": "ana@example.com",
        "first_name": "Ana",
        "last_name": "Perera",
        "password_hash": "never-leaves-the-server",
        "message": "Welcome",
    }
    body.update(overrides)
    return httpx.Response(
        200,
        headers=[("content-type", "application/json"), ("set-cookie", "JSESSIONID=NEWSESSION; Path=/kaidenz")],
        content=json.dumps(body).encode(),
    )


def test_signin_sets_session_and_ui_cookies(client, backend):
    backend.on("SignIn", _signin_response())

    res = client.post("/api/signin", json={"email": "  Ana@Example.COM ", "password": "secret"})

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["user_id"] == "user_abc"
    assert "password_hash" not in data
    assert json.loads(backend.calls[0].content)["email"] == "ana@example.com"

    assert client.cookies.get("JSESSIONID") == "NEWSESSION"
    assert client.cookies.get("user_id") == "user_abc"
    assert client.cookies.get("user_status") == "verified"
    assert client.cookies.get("user_email") is not None


def test_signin_unverified_user(client, backend):
    backend.on("SignIn", _signin_response(verification_required=True))

    client.post("/api/signin", json={"email": "ana@example.com", "password": "secret"})

    assert client.cookies.get("user_status") == "unverified"
    assert client.cookies.get("user_email") is None


def test_signin_bad_credentials(client, backend):
    backend.on("SignIn", httpx.Response(200, json={"status": False, "message": "Invalid password"}))

    res = client.post("/api/signin", json={"email": "ana@example.com", "password": "nope"})

    assert res.status_code == 401
    assert res.json() == {"success": False, "error": "Invalid password"}
    assert client.cookies.get("user_id") is None


def test_signin_requires_email_and_password(client, backend):
    res = client.post("/api/signin", json={"email": "ana@example.com"})

    assert res.status_code == 400
    assert backend.calls == []


def test_signup_generates_user_id(client, backend):
    backend.on("SignUp", httpx.Response(200, json={"status": True, "message": "Check your email"}))

    res = client.post("/api/signup", json={
        "first_name": "Ana", "last_name": "Perera", "email": "ana@example.com", "password": "secret",
    })

    user_id = res.json()["data"]["user_id"]
    assert user_id.startswith("user_")
    assert json.loads(backend.calls[0].content)["user_id"] == user_id
    assert client.cookies.get("user_status") == "unverified"


def test_verify_email_marks_user_verified(client, backend):
    backend.on("VerifyAccount", httpx.Response(200, json={"status": True, "message": "Verified"}))

    res = client.post("/api/verify-email", json={"user_id": "user_abc", "code": "123456"})

    assert res.json()["success"] is True
    assert client.cookies.get("user_status") == "verified"


def test_verify_email_wrong_code(client, backend):
    backend.on("VerifyAccount", httpx.Response(200, json={"status": False, "message": "Invalid code"}))

    res = client.post("/api/verify-email", json={"user_id": "user_abc", "code": "000000"})

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Invalid code"}


def test_signout_clears_cookies_without_backend_call(client, backend, login):
    login()

    res = client.post("/api/signout")

    assert res.json()["success"] is True
    expired = {c.split("=", 1)[0] for c in res.headers.get_list("set-cookie") if "Max-Age=0" in c}
    assert {"JSESSIONID", "user_id", "user_status"} <= expired
    assert backend.calls == []


# ---------- perfil ----------

def test_userinfo_not_authenticated(client, backend):
    backend.on("UserInfo", httpx.Response(200, json={"authenticated": False}))

    res = client.get("/api/userinfo")

    assert res.status_code == 401
    assert res.json() == {"success": False, "error": "User not authenticated"}


def test_userinfo_tolerates_missing_provinces(client, backend):
    backend.on("UserInfo", httpx.Response(200, json={
        "authenticated": True, "user_id": "user_abc", "first_name": "Ana", "last_name": "Perera",
    }))
    backend.on("GetProvince", httpx.Response(500, text="boom"))
    backend.on("GetCities", httpx.Response(200, json=["Colombo", "Kandy"]))

    res = client.get("/api/userinfo")

    data = res.json()["data"]
    assert data["name"] == "Ana Perera"
    assert data["provinces"] == []
    assert data["cities"] == [{"id": "1", "name": "Colombo"}, {"id": "2", "name": "Kandy"}]


def test_user_address_falls_back_to_empty(client, backend):
    backend.on("UserInfo", httpx.Response(200, json={"authenticated": True, "user_id": "user_abc"}))
    backend.on("UpdateAddress", httpx.Response(200, json={"status": "not_found"}))

    res = client.get("/api/user-address")

    body = res.json()
    assert body["success"] is True
    assert body["data"]["address"]["line1"] == ""


def test_update_address_validates_fields(client, backend):
    res = client.put("/api/update-address", json={"line1": "12 Main St", "phone": "123"})

    assert res.status_code == 400
    body = res.json()
    assert body["fields"]["phone"] == "Phone number must be exactly 10 digits"
    assert "city_name" in body["fields"]
    assert backend.calls == []
