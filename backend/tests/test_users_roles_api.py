"""Tests for user and role management endpoints."""

from orderdesk.core.permissions import DEFAULT_USER_PERMISSIONS, all_permissions
from orderdesk.models import Role
from tests.conftest import TEST_PASSWORD, headers_for, make_user


class TestUsers:

    def test_create_user_defaults(self, client, db, auth_headers):
        role_id = db.query(Role).filter(Role.name == "User").one().id
        resp = client.post("/api/users", json={
            "name": "Retoucher",
            "email": "Retoucher@Example.com",
            "password": "long-enough-pw",
            "role_id": role_id,
        }, headers=auth_headers)
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "retoucher@example.com"
        assert body["role"]["name"] == "User"
        assert "password_hash" not in body

    def test_duplicate_email_returns_409(self, client, worker, auth_headers):
        resp = client.post("/api/users", json={
            "name": "Copy", "email": worker.email, "password": "long-enough-pw",
        }, headers=auth_headers)
        assert resp.status_code == 409

    def test_search_users(self, client, worker, auth_headers):
        resp = client.get("/api/users?search=work", headers=auth_headers)
        assert [u["id"] for u in resp.json()] == [worker.id]

    def test_update_password_then_login(self, client, worker, auth_headers):
        client.put(f"/api/users/{worker.id}", json={"password": "brand-new-secret"}, headers=auth_headers)

        old = client.post("/api/auth/login", json={"email": worker.email, "password": TEST_PASSWORD})
        new = client.post("/api/auth/login", json={"email": worker.email, "password": "brand-new-secret"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_empty_password_keeps_current(self, client, worker, auth_headers):
        resp = client.put(f"/api/users/{worker.id}", json={"name": "Renamed", "password": ""}, headers=auth_headers)
        assert resp.json()["name"] == "Renamed"
        login = client.post("/api/auth/login", json={"email": worker.email, "password": TEST_PASSWORD})
        assert login.status_code == 200

    def test_admin_cannot_deactivate_or_delete_self(self, client, admin_user, auth_headers):
        deactivate = client.put(f"/api/users/{admin_user.id}", json={"is_active": False}, headers=auth_headers)
        delete = client.delete(f"/api/users/{admin_user.id}", headers=auth_headers)
        assert deactivate.status_code == 400
        assert delete.status_code == 400

    def test_deactivated_user_loses_access(self, client, worker, worker_headers, auth_headers):
        client.put(f"/api/users/{worker.id}", json={"is_active": False}, headers=auth_headers)
        assert client.get("/api/orders", headers=worker_headers).status_code == 401

    def test_delete_user(self, client, worker, auth_headers):
        assert client.delete(f"/api/users/{worker.id}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/users/{worker.id}", headers=auth_headers).status_code == 404


class TestRoles:

    def test_builtin_roles_are_seeded(self, client, auth_headers):
        roles = {r["name"]: r for r in client.get("/api/roles", headers=auth_headers).json()}
        assert set(roles) == {"Admin", "User"}
        assert set(roles["Admin"]["permission_names"]) == set(all_permissions())
        assert set(roles["User"]["permission_names"]) == set(DEFAULT_USER_PERMISSIONS)

    def test_permission_catalogue_is_grouped(self, client, auth_headers):
        groups = client.get("/api/roles/permissions", headers=auth_headers).json()
        ids = {p["id"] for g in groups for p in g["permissions"]}
        assert ids == set(all_permissions())

    def test_custom_role_grants_permissions(self, client, db, auth_headers):
        resp = client.post("/api/roles", json={
            "name": "Uploader",
            "permissions": ["view:orders", "create:files"],
        }, headers=auth_headers)
        assert resp.status_code == 201
        assert resp.json()["users_count"] == 0

        uploader = make_user(db, name="Uploader", role="Uploader")
        headers = headers_for(uploader)
        assert client.get("/api/orders", headers=headers).status_code == 200
        assert client.post("/api/orders", json={"name": "X"}, headers=headers).status_code == 403

    def test_unknown_permission_returns_400(self, client, auth_headers):
        resp = client.post("/api/roles", json={"name": "Bad", "permissions": ["fly:planes"]}, headers=auth_headers)
        assert resp.status_code == 400

    def test_duplicate_role_returns_409(self, client, auth_headers):
        resp = client.post("/api/roles", json={"name": "User"}, headers=auth_headers)
        assert resp.status_code == 409

    def test_admin_role_is_protected(self, client, db, auth_headers):
        admin_id = db.query(Role).filter(Role.name == "Admin").one().id
        update = client.put(f"/api/roles/{admin_id}", json={"name": "Boss"}, headers=auth_headers)
        delete = client.delete(f"/api/roles/{admin_id}", headers=auth_headers)
        assert update.status_code == 403
        assert delete.status_code == 403
        assert update.json()["error"] == "PROTECTED_RESOURCE"

    def test_role_in_use_cannot_be_deleted(self, client, db, auth_headers, worker):
        user_role = db.query(Role).filter(Role.name == "User").one()
        resp = client.delete(f"/api/roles/{user_role.id}", headers=auth_headers)
        assert resp.status_code == 409

    def test_update_role_permissions(self, client, db, auth_headers):
        role_id = client.post("/api/roles", json={"name": "Temp"}, headers=auth_headers).json()["id"]
        resp = client.put(
            f"/api/roles/{role_id}",
            json={"name": "Temp", "permissions": ["view:claims"]},
            headers=auth_headers,
        )
        assert resp.json()["permission_names"] == ["view:claims"]
        assert client.delete(f"/api/roles/{role_id}", headers=auth_headers).status_code == 204
