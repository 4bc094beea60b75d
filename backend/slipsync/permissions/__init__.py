# Overview: Permission system package.
# Re-exports all public APIs for backwards-compatible imports.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    PERMISSION_CODES,
    SALES_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    CATALOG_PERMISSIONS,
    CUSTOMER_PERMISSIONS,
    REPORT_PERMISSIONS,
    ORGANIZATION_PERMISSIONS,
    PROCESS_SALES,
    REFUND_SALES,
    VIEW_INVENTORY,
    UPDATE_INVENTORY,
    MANAGE_PRODUCTS,
    MANAGE_CUSTOMERS,
    VIEW_REPORTS,
    EXPORT_REPORTS,
    MANAGE_STORES,
    MANAGE_EMPLOYEES,
    describe_permission,
)
from .roles import (
    RoleName,
    ROLE_ALIASES,
    ROLE_DESCRIPTIONS,
    DEFAULT_ROLE_PERMISSIONS,
    normalize_role,
    canonical_role_name,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "PERMISSION_CODES",
    "SALES_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "CATALOG_PERMISSIONS",
    "CUSTOMER_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "ORGANIZATION_PERMISSIONS",
    "PROCESS_SALES",
    "REFUND_SALES",
    "VIEW_INVENTORY",
    "UPDATE_INVENTORY",
    "MANAGE_PRODUCTS",
    "MANAGE_CUSTOMERS",
    "VIEW_REPORTS",
    "EXPORT_REPORTS",
    "MANAGE_STORES",
    "MANAGE_EMPLOYEES",
    "describe_permission",
    "RoleName",
    "ROLE_ALIASES",
    "ROLE_DESCRIPTIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "normalize_role",
    "canonical_role_name",
]
