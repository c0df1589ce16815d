"""Permission catalogue.

Every permission the application checks is a member of one of the enums
below. The seeder inserts the full catalogue; ``require_permission`` in
``core.auth`` checks membership in the caller's role.
"""

from enum import Enum
from typing import List, Type


class RoleName(str, Enum):
    """Built-in roles created on first startup."""
    ADMIN = "Admin"
    USER = "User"


class OrderManagementPermissions(str, Enum):
    VIEW_ORDERS = "view:orders"
    CREATE_ORDERS = "create:orders"
    EDIT_ORDERS = "edit:orders"
    DELETE_ORDERS = "delete:orders"

    VIEW_FILES = "view:files"
    CREATE_FILES = "create:files"
    EDIT_FILES = "edit:files"
    DELETE_FILES = "delete:files"

    VIEW_CLAIMS = "view:claims"


class UserPermissions(str, Enum):
    VIEW_USER = "user:view"
    CREATE_USER = "user:create"
    UPDATE_USER = "user:update"
    DELETE_USER = "user:delete"


class RolePermissions(str, Enum):
    VIEW_ROLE = "role:view"
    CREATE_ROLE = "role:create"
    UPDATE_ROLE = "role:update"
    DELETE_ROLE = "role:delete"


class SettingPermissions(str, Enum):
    VIEW = "setting:view"
    UPDATE = "setting:update"


PERMISSION_GROUPS: List[Type[Enum]] = [
    OrderManagementPermissions,
    UserPermissions,
    RolePermissions,
    SettingPermissions,
]

# Granted to the built-in User role: work on files, never administer.
DEFAULT_USER_PERMISSIONS = frozenset({
    OrderManagementPermissions.VIEW_ORDERS.value,
    OrderManagementPermissions.VIEW_FILES.value,
    OrderManagementPermissions.EDIT_FILES.value,
    OrderManagementPermissions.VIEW_CLAIMS.value,
})


def _group_label(enum_cls: Type[Enum]) -> str:
    # OrderManagementPermissions -> "Order Management"
    base = enum_cls.__name__.removesuffix("Permissions")
    words: list[str] = []
    for ch in base:
        if ch.isupper() and words:
            words.append(" ")
        words.append(ch)
    return "".join(words)


def all_permissions() -> List[str]:
    """Every permission name, in declaration order."""
    return [member.value for group in PERMISSION_GROUPS for member in group]


def grouped_permissions() -> List[dict]:
    """Permissions grouped for the role editor: ``[{name, permissions: [{id, name}]}]``."""
    return [
        {
            "name": _group_label(group),
            "permissions": [
                {"id": member.value, "name": member.name.replace("_", " ").capitalize()}
                for member in group
            ],
        }
        for group in PERMISSION_GROUPS
    ]
