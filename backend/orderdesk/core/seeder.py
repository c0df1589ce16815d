"""Seed permissions, built-in roles and the first admin on startup.

Idempotent: existing rows are left alone, missing permissions are added and
the Admin role is topped up so it always holds the full catalogue.
"""

import logging

from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from .config import settings
from .permissions import DEFAULT_USER_PERMISSIONS, RoleName, all_permissions

logger = logging.getLogger(__name__)


def seed_permissions_and_roles(db: Session) -> int:
    """Insert missing permissions and the Admin/User roles.

    Args:
        db: An open SQLAlchemy session. Committed on success.

    Returns:
        Number of permissions created (0 if the catalogue was complete).
    """
    from ..models import Permission, Role
    from ..repositories import PermissionRepository, RoleRepository

    perm_repo = PermissionRepository(db)
    existing = perm_repo.existing_names()
    missing = [name for name in all_permissions() if name not in existing]
    for name in missing:
        db.add(Permission(name=name))
    db.flush()

    catalogue = perm_repo.list_all()
    role_repo = RoleRepository(db)

    admin = role_repo.get_by_name(RoleName.ADMIN.value)
    if admin is None:
        admin = Role(name=RoleName.ADMIN.value, description="Full access", is_active=True)
        db.add(admin)
    admin.permissions = list(catalogue)

    if role_repo.get_by_name(RoleName.USER.value) is None:
        db.add(Role(
            name=RoleName.USER.value,
            description="Works on claimed files",
            is_active=True,
            permissions=[p for p in catalogue if p.name in DEFAULT_USER_PERMISSIONS],
        ))

    db.commit()
    if missing:
        logger.info("Seeded %d permissions", len(missing))
    return len(missing)


def seed_admin_user(db: Session) -> bool:
    """Create the configured admin account if no user exists yet.

    Uses ``ADMIN_EMAIL`` / ``ADMIN_PASSWORD``; does nothing when either is
    empty. Returns True when a user was created.
    """
    from ..models import User
    from ..repositories import RoleRepository, UserRepository

    if not settings.admin_email or not settings.admin_password:
        return False

    user_repo = UserRepository(db)
    if user_repo.count() > 0:
        logger.debug("Users already exist, skipping admin seed")
        return False

    admin_role = RoleRepository(db).get_by_name(RoleName.ADMIN.value)
    db.add(User(
        name="Administrator",
        email=settings.admin_email.strip().lower(),
        password_hash=bcrypt.hash(settings.admin_password),
        role_id=admin_role.id if admin_role else None,
        is_active=True,
    ))
    db.commit()
    logger.info("Seeded admin user %s", settings.admin_email)
    return True
