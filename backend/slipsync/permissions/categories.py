# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    SALES = "SALES"
    INVENTORY = "INVENTORY"
    CATALOG = "CATALOG"
    CUSTOMERS = "CUSTOMERS"
    REPORTS = "REPORTS"
    ORGANIZATION = "ORGANIZATION"
