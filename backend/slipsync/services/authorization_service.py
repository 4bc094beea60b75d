# Overview: Pure role/permission/store-access decisions. No database or request access.

"""
Authorization model.

Every function here is a pure function of its arguments: a user (or anything
exposing role_name), a role string, or a RoleName. Callers resolve the access
set first (see store_access_service) and pass it in.

Role handling goes through permissions.normalize_role only; raw role strings
are never compared here.
"""

from __future__ import annotations

from typing import Iterable

from ..permissions import DEFAULT_ROLE_PERMISSIONS, RoleName, normalize_role


def is_admin(user) -> bool:
    return normalize_role(user) is RoleName.ADMIN


def is_employee(user) -> bool:
    return normalize_role(user) is RoleName.EMPLOYEE


def has_permission(user, permission_code: str) -> bool:
    """
    ADMIN holds every permission, EMPLOYEE holds its fixed table, any other
    role (including none) holds nothing.
    """
    role = normalize_role(user)
    return permission_code in DEFAULT_ROLE_PERMISSIONS[role]


def can_access_store(user, store_id, access_set: Iterable[str]) -> bool:
    """
    ADMIN reaches every store. EMPLOYEE reaches a store only when its id (as a
    string) is in access_set. Any other role reaches nothing.

    Merchant ownership of store_id is checked by the caller.
    """
    role = normalize_role(user)
    if role is RoleName.ADMIN:
        return True
    if role is RoleName.EMPLOYEE:
        if store_id is None:
            return False
        return str(store_id) in {str(value) for value in access_set}
    return False


def filter_accessible_stores(user, stores: list, access_set: Iterable[str], *, fail_open: bool = True) -> list:
    """
    Stores the user may see, in input order.

    ADMIN sees every store; EMPLOYEE sees the stores in access_set.

    Users without a recognised role see every store when fail_open is True.
    This tolerates users synced before roles were assigned; it is the only
    place an unknown role is granted anything, and it is switchable through
    UNASSIGNED_ROLE_SEES_ALL_STORES. With fail_open False they see nothing.
    """
    role = normalize_role(user)
    if role is RoleName.ADMIN:
        return list(stores)
    if role is RoleName.EMPLOYEE:
        allowed = {str(value) for value in access_set}
        return [store for store in stores if str(store.id) in allowed]
    return list(stores) if fail_open else []
