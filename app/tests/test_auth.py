from datetime import timedelta

from app.utils.security import create_access_token
from app.tests.helpers import auth_headers


def test_register_returns_token(client):
    res = client.post(
        "/api/v1/auth/register",
        json={"email": "New.Member@example.com", "password": "Password123", "fullName": "New Member"},
    )

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["email"] == "new.member@example.com"
    assert data["user"]["role"] == "user"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert me.json()["data"]["fullName"] == "New Member"


def test_register_rejects_weak_password(client):
    res = client.post("/api/v1/auth/register", json={"email": "weak@example.com", "password": "abc"})
    assert res.status_code == 400


def test_register_duplicate_email(client, user):
    res = client.post("/api/v1/auth/register", json={"email": user.email, "password": "Password123"})
    assert res.status_code == 400
    assert res.json()["message"] == "Email already registered"


def test_login(client, user):
    ok = client.post("/api/v1/auth/login", json={"email": user.email, "password": "Password123"})
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["id"] == user.id

    bad = client.post("/api/v1/auth/login", json={"email": user.email, "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "message": "Invalid email or password"}


def test_login_disabled_account(client, db, user):
    user.is_active = False
    db.commit()

    res = client.post("/api/v1/auth/login", json={"email": user.email, "password": "Password123"})
    assert res.status_code == 403
    assert res.json()["message"] == "Account is disabled"


def test_me_requires_valid_token(client, user):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    expired = create_access_token(user.id, expires_delta=timedelta(minutes=-5))
    res = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401
    assert res.json()["message"] == "Token has expired"

    assert client.get("/api/v1/auth/me", headers=auth_headers(user)).status_code == 200


def test_unknown_route_uses_error_envelope(client):
    res = client.get("/api/v1/does-not-exist")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Endpoint not found"}


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
