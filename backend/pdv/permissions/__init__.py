# Overview: Permission catalog package.
# Re-exports all public APIs.

from .categories import PermissionCategory, CATEGORY_ORDER
from .definitions import (
    PERMISSION_DEFINITIONS,
    PRODUCT_PERMISSIONS,
    ENTRY_PERMISSIONS,
    SUPPLIER_PERMISSIONS,
    SALES_PERMISSIONS,
    REPORT_PERMISSIONS,
    CLIENT_PERMISSIONS,
    USER_PERMISSIONS,
    ROLE_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .helpers import (
    get_all_permission_keys,
    get_permissions_by_category,
    get_permission_groups,
    get_permission_definition,
    validate_permission_key,
)

MANAGE_PERMISSIONS = "permissions.manage"

__all__ = [
    "PermissionCategory",
    "CATEGORY_ORDER",
    "PERMISSION_DEFINITIONS",
    "PRODUCT_PERMISSIONS",
    "ENTRY_PERMISSIONS",
    "SUPPLIER_PERMISSIONS",
    "SALES_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "CLIENT_PERMISSIONS",
    "USER_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "MANAGE_PERMISSIONS",
    "get_all_permission_keys",
    "get_permissions_by_category",
    "get_permission_groups",
    "get_permission_definition",
    "validate_permission_key",
]
