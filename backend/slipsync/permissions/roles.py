# Overview: Closed role set, role-name normalization and the default role permission table.

from __future__ import annotations

from enum import Enum

from .definitions import (
    PERMISSION_CODES,
    PROCESS_SALES,
    VIEW_INVENTORY,
    UPDATE_INVENTORY,
    MANAGE_CUSTOMERS,
    VIEW_REPORTS,
)


class RoleName(str, Enum):
    """
    Logical roles.

    WHY: Role strings arrive from two places (our roles table and the identity
    provider's organization role claim) with different spellings. They are
    normalized once, at the boundary, and only RoleName values travel deeper.
    """
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"
    UNKNOWN = "UNKNOWN"


# Identity provider and legacy spellings, compared lower-cased.
ROLE_ALIASES = {
    "admin": RoleName.ADMIN,
    "org:admin": RoleName.ADMIN,
    "owner": RoleName.ADMIN,
    "employee": RoleName.EMPLOYEE,
    "org:employee": RoleName.EMPLOYEE,
    "staff": RoleName.EMPLOYEE,
}


def normalize_role(value) -> RoleName:
    """
    Map any role representation to a RoleName.

    Accepts a RoleName, a role string in any case, or an object exposing
    role_name (a User). None, blank and unrecognised strings map to UNKNOWN.
    """
    if isinstance(value, RoleName):
        return value
    if value is not None and not isinstance(value, str):
        value = getattr(value, "role_name", None)
    if not value:
        return RoleName.UNKNOWN
    return ROLE_ALIASES.get(value.strip().lower(), RoleName.UNKNOWN)


def canonical_role_name(value) -> str | None:
    """Stored role-table name for a recognised role, else None."""
    role = normalize_role(value)
    if role is RoleName.UNKNOWN:
        return None
    return role.value


ROLE_DESCRIPTIONS = {
    RoleName.ADMIN: "Full access to every store of the merchant",
    RoleName.EMPLOYEE: "Store-floor access to the stores granted by an admin",
}


DEFAULT_ROLE_PERMISSIONS = {
    RoleName.ADMIN: PERMISSION_CODES,
    RoleName.EMPLOYEE: frozenset({
        PROCESS_SALES,
        VIEW_INVENTORY,
        UPDATE_INVENTORY,
        MANAGE_CUSTOMERS,
        VIEW_REPORTS,
    }),
    RoleName.UNKNOWN: frozenset(),
}
