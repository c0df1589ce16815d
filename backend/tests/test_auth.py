"""Tests for the auth module — tokens, login, permissions and dev mode."""

from orderdesk.core.config import settings
from orderdesk.core.token_factory import create_token, decode_token
from orderdesk.models import User
from tests.conftest import TEST_PASSWORD, headers_for, make_user


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("42", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "42"

    def test_wrong_secret_returns_none(self):
        token = create_token("42", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("42", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None


class TestLogin:

    def test_login_returns_token_for_valid_credentials(self, client, worker):
        resp = client.post("/api/auth/login", json={"email": worker.email, "password": TEST_PASSWORD})
        assert resp.status_code == 200
        body = resp.json()
        assert body["user"]["email"] == worker.email
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == worker.id

    def test_login_email_is_case_insensitive(self, client, worker):
        resp = client.post("/api/auth/login", json={"email": "WORKER@example.com", "password": TEST_PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password_returns_401(self, client, worker):
        resp = client.post("/api/auth/login", json={"email": worker.email, "password": "nope-nope-nope"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_inactive_user_cannot_login(self, client, db):
        user = make_user(db, name="Gone", is_active=False)
        resp = client.post("/api/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
        assert resp.status_code == 401


class TestRegister:

    def test_first_user_becomes_admin(self, client, db):
        resp = client.post("/api/auth/register", json={
            "name": "Owner", "email": "Owner@Example.com", "password": "long-enough-pw",
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "owner@example.com"
        assert body["role"]["name"] == "Admin"

    def test_registration_closed_once_a_user_exists(self, client, worker):
        resp = client.post("/api/auth/register", json={
            "name": "Late", "email": "late@example.com", "password": "long-enough-pw",
        })
        assert resp.status_code == 403

    def test_short_password_rejected(self, client, db):
        resp = client.post("/api/auth/register", json={
            "name": "Owner", "email": "owner@example.com", "password": "short",
        })
        assert resp.status_code == 422
        assert db.query(User).count() == 0


class TestAuthEnforcement:

    def test_missing_token_returns_401(self, client):
        assert client.get("/api/orders").status_code == 401

    def test_garbage_token_returns_401(self, client):
        resp = client.get("/api/orders", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    def test_token_of_deleted_user_returns_401(self, client, db, worker):
        headers = headers_for(worker)
        db.delete(worker)
        db.commit()
        assert client.get("/api/orders", headers=headers).status_code == 401

    def test_missing_permission_returns_403(self, client, worker_headers):
        resp = client.post("/api/orders", json={"name": "Nope"}, headers=worker_headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    def test_default_user_role_can_view_orders(self, client, worker_headers):
        assert client.get("/api/orders", headers=worker_headers).status_code == 200

    def test_user_without_role_is_forbidden(self, client, db):
        user = make_user(db, name="Roleless", role=None)
        resp = client.get("/api/orders", headers=headers_for(user))
        assert resp.status_code == 403

    def test_admin_only_endpoint(self, client, worker_headers, auth_headers):
        assert client.get("/api/users", headers=worker_headers).status_code == 403
        assert client.get("/api/users", headers=auth_headers).status_code == 200


class TestAuthDisabledMode:
    """With AUTH_ENABLED=false the caller acts as the first active Admin."""

    def test_requests_without_token_succeed(self, client, admin_user, monkeypatch):
        monkeypatch.setattr(settings, "auth_enabled", False)
        resp = client.post("/api/orders", json={"name": "Dev order"})
        assert resp.status_code == 201
        assert resp.json()["created_by"] == admin_user.id

    def test_claim_without_any_admin_returns_401(self, client, db, monkeypatch):
        monkeypatch.setattr(settings, "auth_enabled", False)
        order_id = client.post("/api/orders", json={"name": "Dev order"}).json()["id"]
        resp = client.post(f"/api/orders/{order_id}/claims", json={})
        assert resp.status_code == 401
