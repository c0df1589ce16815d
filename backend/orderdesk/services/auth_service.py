"""Authentication service — password checks, first-user registration, tokens.

All password operations use bcrypt via passlib. Passwords are never stored
or logged in plaintext.
"""

import logging

from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.permissions import RoleName
from ..core.token_factory import create_token
from ..database import transaction
from ..exceptions import AuthenticationError, ForbiddenError
from ..models import User
from ..repositories import RoleRepository, UserRepository

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.verify(password, password_hash)


def register_first_user(db: Session, name: str, email: str, password: str) -> User:
    """Create the very first account, as an Admin.

    Registration is closed once any user exists; further accounts are created
    by an admin through the users API. The user table is locked for the
    count so two concurrent registrations cannot both succeed.
    """
    users = UserRepository(db)
    existing = db.query(User).with_for_update().count()
    if existing > 0:
        raise ForbiddenError("Registration is closed. Ask an administrator for an account")

    admin_role = RoleRepository(db).get_by_name(RoleName.ADMIN.value)
    with transaction(db, "register user"):
        user = users.add(User(
            name=name.strip(),
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role_id=admin_role.id if admin_role else None,
            is_active=True,
        ))

    logger.info("First user registered as admin: %s", user.email)
    return users.get_by_id(user.id)


def authenticate(db: Session, email: str, password: str) -> User:
    """Validate credentials and return the user.

    Raises AuthenticationError on unknown email, wrong password, or inactive account.
    """
    user = UserRepository(db).get_by_email(email.strip().lower())

    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return user


def issue_token(user: User) -> str:
    return create_token(
        subject=str(user.id),
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.jwt_expires_hours,
    )
