# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from __future__ import annotations

from .categories import PermissionCategory


PROCESS_SALES = "process_sales"
REFUND_SALES = "refund_sales"
VIEW_INVENTORY = "view_inventory"
UPDATE_INVENTORY = "update_inventory"
MANAGE_PRODUCTS = "manage_products"
MANAGE_CUSTOMERS = "manage_customers"
VIEW_REPORTS = "view_reports"
EXPORT_REPORTS = "export_reports"
MANAGE_STORES = "manage_stores"
MANAGE_EMPLOYEES = "manage_employees"


# -- SALES --

SALES_PERMISSIONS = [
    (PROCESS_SALES, "Process Sales", "Place orders and print receipts", PermissionCategory.SALES),
    (REFUND_SALES, "Refund Sales", "Refund or cancel completed orders", PermissionCategory.SALES),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (VIEW_INVENTORY, "View Inventory", "View stock levels of the active store", PermissionCategory.INVENTORY),
    (UPDATE_INVENTORY, "Update Inventory", "Adjust stock levels and reorder points", PermissionCategory.INVENTORY),
]


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (MANAGE_PRODUCTS, "Manage Products", "Create and edit products and variants", PermissionCategory.CATALOG),
]


# -- CUSTOMERS --

CUSTOMER_PERMISSIONS = [
    (MANAGE_CUSTOMERS, "Manage Customers", "Create and edit customers", PermissionCategory.CUSTOMERS),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (VIEW_REPORTS, "View Reports", "View sales and inventory reports", PermissionCategory.REPORTS),
    (EXPORT_REPORTS, "Export Reports", "Download report exports", PermissionCategory.REPORTS),
]


# -- ORGANIZATION --

ORGANIZATION_PERMISSIONS = [
    (MANAGE_STORES, "Manage Stores", "Create and edit stores", PermissionCategory.ORGANIZATION),
    (MANAGE_EMPLOYEES, "Manage Employees", "Edit employee store access", PermissionCategory.ORGANIZATION),
]


PERMISSION_DEFINITIONS = (
    SALES_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + CATALOG_PERMISSIONS
    + CUSTOMER_PERMISSIONS
    + REPORT_PERMISSIONS
    + ORGANIZATION_PERMISSIONS
)

PERMISSION_CODES = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)


def describe_permission(code: str) -> dict | None:
    """Full definition for a permission code, or None when unknown."""
    for perm_code, name, description, category in PERMISSION_DEFINITIONS:
        if perm_code == code:
            return {"code": perm_code, "name": name, "description": description, "category": category}
    return None
