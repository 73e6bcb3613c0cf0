from typing import Generator

import pytest
from fastapi.testclient import TestClient

from provider_directory.core.config import Settings
from provider_directory.main import create_app

ADMIN_EMAIL = "admin@directory.io"
ADMIN_PASSWORD = "admin-password-1"

PROVIDER_FIELDS = {
    "name": "Shop",
    "username": "shop1",
    "city": "Nairobi",
    "category": "Products",
    "subcategory": "Fashion & Apparel",
}

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        SECRET_KEY="test-secret",
        BCRYPT_ROUNDS=4,
        ADMIN_NAME="Test Admin",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    # Entering the client runs the lifespan: tables and admin seed
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def db_session(app, client):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def signup(client):
    """Sign up a user and return the response body ({token, user})"""
    def _signup(name="Alice", email="alice@x.com", password="longenough1", **extra):
        response = client.post(
            "/api/signup",
            json={"name": name, "email": email, "password": password, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _signup


@pytest.fixture()
def user_headers(signup) -> dict:
    return bearer(signup()["token"])


@pytest.fixture()
def other_headers(signup) -> dict:
    return bearer(signup(name="Bob", email="bob@x.com")["token"])


@pytest.fixture()
def admin_headers(client) -> dict:
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return bearer(response.json()["token"])


@pytest.fixture()
def create_provider(client):
    """POST a listing as multipart and return the created provider"""
    def _create(headers, files=None, **fields):
        data = {**PROVIDER_FIELDS, **fields}
        response = client.post("/api/providers", data=data, files=files, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["provider"]
    return _create
