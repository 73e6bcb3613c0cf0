from datetime import timedelta

from provider_directory.core.security import TokenIssuer

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, bearer


def test_signup_returns_token_and_user(client, signup):
    body = signup(name="Alice", email="Alice@X.com", phone="555-0100")

    assert body["token"]
    user = body["user"]
    assert user["name"] == "Alice"
    assert user["email"] == "alice@x.com"
    assert user["role"] == "user"
    assert user["phone"] == "555-0100"
    assert user["id"].startswith("user-")
    assert "password" not in user

    me = client.get("/api/user", headers=bearer(body["token"]))
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user["id"]


def test_signup_avatar_url_stored_as_sent(client, signup):
    body = signup(avatar="https://cdn.x.com")
    assert body["user"]["avatar"] == "https://cdn.x.com"

    me = client.get("/api/user", headers=bearer(body["token"])).json()["user"]
    assert me["avatar"] == "https://cdn.x.com"


def test_signup_rejects_invalid_avatar_url(client):
    response = client.post(
        "/api/signup",
        json={"name": "Alice", "email": "alice@x.com", "password": "longenough1", "avatar": "not a url"},
    )
    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["avatar"]


def test_signup_cannot_choose_role(signup):
    body = signup(role="admin")
    assert body["user"]["role"] == "user"


def test_signup_duplicate_email(client, signup, admin_headers):
    signup(email="alice@x.com")

    response = client.post(
        "/api/signup",
        json={"name": "Other", "email": "ALICE@x.com", "password": "longenough1"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Email already in use"}

    # Seeded admin plus one user
    count = client.get("/api/admin/users/count", headers=admin_headers)
    assert count.json() == {"count": 2}


def test_signup_validation_errors(client):
    response = client.post(
        "/api/signup",
        json={"name": "Alice", "email": "not-an-email", "password": "short"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"email", "password"} <= fields


def test_signup_missing_fields(client):
    response = client.post("/api/signup", json={"email": "a@x.com"})
    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"name", "password"} <= fields


def test_login_success(client, signup):
    signup(email="alice@x.com", password="longenough1")

    response = client.post("/api/login", json={"email": "alice@x.com", "password": "longenough1"})
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "alice@x.com"
    assert client.get("/api/user", headers=bearer(body["token"])).status_code == 200


def test_login_wrong_password_and_unknown_email_look_the_same(client, signup):
    signup(email="alice@x.com", password="longenough1")

    wrong_password = client.post("/api/login", json={"email": "alice@x.com", "password": "wrong-password"})
    unknown_email = client.post("/api/login", json={"email": "nobody@x.com", "password": "longenough1"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials"}


def test_seeded_admin_can_login(client):
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


def test_protected_route_without_token(client):
    response = client.get("/api/user")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized: No token provided"}
    assert response.headers["www-authenticate"] == "Bearer"


def test_protected_route_with_garbage_token(client):
    response = client.get("/api/user", headers=bearer("not.a.token"))
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized: Invalid token"}


def test_expired_token_rejected(app, client, signup):
    user = signup()["user"]
    token = app.state.token_issuer.create_access_token(
        {"sub": user["id"], "email": user["email"], "role": "user"},
        expires_delta=timedelta(minutes=-1),
    )
    assert client.get("/api/user", headers=bearer(token)).status_code == 401


def test_token_signed_with_other_secret_rejected(settings, client, signup):
    user = signup()["user"]
    forger = TokenIssuer(settings.model_copy(update={"SECRET_KEY": "someone-else"}))
    token = forger.create_access_token({"sub": user["id"], "email": user["email"], "role": "admin"})

    assert client.get("/api/user", headers=bearer(token)).status_code == 401
    assert client.get("/api/admin/users/count", headers=bearer(token)).status_code == 401
