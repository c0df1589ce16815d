"""Shared test fixtures for the OrderDesk backend test suite.

Tests run against a throwaway SQLite database and blob directory created in
a temp dir before any app import. Every table is emptied and the permission
catalogue re-seeded before each test.

Auth is enabled; ``auth_headers`` carries a token for a seeded Admin user.
Tests exercising dev mode flip ``settings.auth_enabled`` with monkeypatch.
"""

import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="orderdesk-test-")

# Point the app at the temp database and storage before any app imports.
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'test.db')}"
)
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "storage")
os.environ["AUTH_ENABLED"] = "true"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_FORMAT"] = "text"
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

from typing import Optional

import pytest
from fastapi.testclient import TestClient
from passlib.hash import bcrypt

from orderdesk.database import Base, get_db, SessionLocal
from orderdesk.main import app
from orderdesk.core.config import settings
from orderdesk.core.permissions import RoleName
from orderdesk.core.seeder import seed_permissions_and_roles
from orderdesk.core.token_factory import create_token
from orderdesk.middleware.request_context import rate_limiter
from orderdesk.models import FileItem, FileStatus, Order, Role, User
from orderdesk.schemas.order import OrderCreate
from orderdesk.services import OrderService

# One hash for every test user; bcrypt is deliberately slow.
TEST_PASSWORD = "correct-horse-battery"
_PASSWORD_HASH = bcrypt.hash(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table, then re-seed permissions and roles.

    Runs before the test (not after) so failures leave data for debugging.
    """
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        seed_permissions_and_roles(db)
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    rate_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(
    db,
    name: str = "Worker",
    email: Optional[str] = None,
    role: Optional[str] = RoleName.USER.value,
    is_active: bool = True,
) -> User:
    """Create a user with the given built-in or custom role name."""
    role_obj = db.query(Role).filter(Role.name == role).first() if role else None
    user = User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        password_hash=_PASSWORD_HASH,
        role_id=role_obj.id if role_obj else None,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token = create_token(subject=str(user.id), secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_user(db) -> User:
    return make_user(db, name="Admin", email="admin@example.com", role=RoleName.ADMIN.value)


@pytest.fixture()
def auth_headers(admin_user) -> dict:
    """Valid JWT auth headers for an Admin user."""
    return headers_for(admin_user)


@pytest.fixture()
def worker(db) -> User:
    return make_user(db, name="Worker", email="worker@example.com")


@pytest.fixture()
def worker_headers(worker) -> dict:
    return headers_for(worker)


def make_order(db, name: str = "Test Order", user_id: Optional[int] = None, **overrides) -> Order:
    """Create an order (with its default folders) through the service."""
    return OrderService(db).create_order(OrderCreate(name=name, **overrides), user_id=user_id)


def make_files(
    db,
    order: Order,
    count: int,
    folder_id: Optional[int] = None,
    subfolder_id: Optional[int] = None,
    status: str = FileStatus.PENDING.value,
    assigned_to: Optional[int] = None,
) -> list[FileItem]:
    """Insert file rows directly, without blobs. Returned in id order."""
    items = []
    for i in range(count):
        item = FileItem(
            order_id=order.id,
            folder_id=folder_id,
            subfolder_id=subfolder_id,
            name=f"image-{i}.jpg",
            original_name=f"image-{i}.jpg",
            path=f"orders/{order.id}/image-{i}.jpg",
            file_type="image/jpeg",
            file_size=1024,
            status=status,
            assigned_to=assigned_to,
            is_processed=status == FileStatus.COMPLETED.value,
        )
        db.add(item)
        items.append(item)
    db.commit()
    for item in items:
        db.refresh(item)
    return items
