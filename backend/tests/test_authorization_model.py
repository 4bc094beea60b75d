# Overview: Pytest coverage for the pure role, permission and store-access decisions.

"""
Authorization model tests.

No database: users are any object exposing role_name, stores any object
exposing id.
"""

from types import SimpleNamespace

import pytest

from slipsync.permissions import (
    PERMISSION_CODES,
    RoleName,
    canonical_role_name,
    normalize_role,
)
from slipsync.services.authorization_service import (
    can_access_store,
    filter_accessible_stores,
    has_permission,
    is_admin,
    is_employee,
)


def user(role_name):
    return SimpleNamespace(role_name=role_name)


S1, S2, S3 = (SimpleNamespace(id=f"00000000-0000-0000-0000-00000000000{i}") for i in (1, 2, 3))
ALL_STORES = [S1, S2, S3]

EMPLOYEE_ALLOWED = ["process_sales", "view_inventory", "update_inventory", "manage_customers", "view_reports"]
EMPLOYEE_DENIED = ["manage_stores", "manage_employees", "manage_products", "export_reports", "refund_sales"]


class TestRoleNormalization:

    @pytest.mark.parametrize("raw", ["ADMIN", "admin", "Admin", "org:admin", "ORG:ADMIN", "owner", " admin "])
    def test_admin_synonyms(self, raw):
        assert normalize_role(raw) is RoleName.ADMIN

    @pytest.mark.parametrize("raw", ["EMPLOYEE", "employee", "org:employee", "staff", "Staff"])
    def test_employee_synonyms(self, raw):
        assert normalize_role(raw) is RoleName.EMPLOYEE

    @pytest.mark.parametrize("raw", [None, "", "   ", "manager", "org:member", "superuser"])
    def test_unrecognised_is_unknown(self, raw):
        assert normalize_role(raw) is RoleName.UNKNOWN

    def test_user_objects_normalize_through_role_name(self):
        assert normalize_role(user("org:admin")) is RoleName.ADMIN
        assert normalize_role(user(None)) is RoleName.UNKNOWN

    def test_canonical_names(self):
        assert canonical_role_name("org:employee") == "EMPLOYEE"
        assert canonical_role_name("owner") == "ADMIN"
        assert canonical_role_name("cashier") is None


class TestRolePredicates:

    def test_is_admin(self):
        assert is_admin(user("ADMIN"))
        assert not is_admin(user("EMPLOYEE"))
        assert not is_admin(user(None))

    def test_is_employee(self):
        assert is_employee(user("staff"))
        assert not is_employee(user("admin"))


class TestHasPermission:

    @pytest.mark.parametrize("code", sorted(PERMISSION_CODES))
    def test_admin_has_every_permission(self, code):
        assert has_permission(user("ADMIN"), code)

    @pytest.mark.parametrize("code", EMPLOYEE_ALLOWED)
    def test_employee_allowed(self, code):
        assert has_permission(user("EMPLOYEE"), code)

    @pytest.mark.parametrize("code", EMPLOYEE_DENIED)
    def test_employee_denied(self, code):
        assert not has_permission(user("EMPLOYEE"), code)

    @pytest.mark.parametrize("role_name", [None, "", "manager"])
    def test_unknown_role_has_nothing(self, role_name):
        for code in PERMISSION_CODES:
            assert not has_permission(user(role_name), code)

    def test_unknown_permission_code_is_denied(self):
        assert not has_permission(user("EMPLOYEE"), "launch_rockets")


class TestCanAccessStore:

    @pytest.mark.parametrize("access_set", [set(), {S1.id}, {"not-a-store"}])
    def test_admin_always_allowed(self, access_set):
        assert can_access_store(user("ADMIN"), S2.id, access_set)

    def test_employee_needs_store_in_access_set(self):
        employee = user("EMPLOYEE")
        assert can_access_store(employee, S1.id, {S1.id, S3.id})
        assert not can_access_store(employee, S2.id, {S1.id, S3.id})
        assert not can_access_store(employee, S1.id, set())

    def test_employee_compares_string_forms(self):
        assert can_access_store(user("EMPLOYEE"), 42, {"42"})

    def test_employee_without_store(self):
        assert not can_access_store(user("EMPLOYEE"), None, {S1.id})

    @pytest.mark.parametrize("role_name", [None, "manager"])
    def test_other_roles_denied(self, role_name):
        assert not can_access_store(user(role_name), S1.id, {S1.id})


class TestFilterAccessibleStores:

    def test_admin_sees_all(self):
        assert filter_accessible_stores(user("ADMIN"), ALL_STORES, set()) == ALL_STORES

    def test_employee_sees_granted_stores_in_input_order(self):
        result = filter_accessible_stores(user("EMPLOYEE"), ALL_STORES, {S3.id, S1.id})
        assert result == [S1, S3]

    @pytest.mark.parametrize("role_name", [None, "", "manager"])
    def test_unknown_role_fails_open_by_default(self, role_name):
        """Users without a recognised role see every store unless fail_open is off."""
        assert filter_accessible_stores(user(role_name), ALL_STORES, set()) == ALL_STORES

    def test_unknown_role_fail_closed(self):
        assert filter_accessible_stores(user(None), ALL_STORES, {S1.id}, fail_open=False) == []

    def test_returns_new_list(self):
        result = filter_accessible_stores(user("ADMIN"), ALL_STORES, set())
        assert result is not ALL_STORES
