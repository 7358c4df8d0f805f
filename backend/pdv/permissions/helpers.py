# Overview: Utility functions for permission lookups and validation.

from .categories import CATEGORY_ORDER
from .definitions import PERMISSION_DEFINITIONS


def get_all_permission_keys():
    """Get list of all permission keys."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """Get all permissions in a category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[2] == category]


def get_permission_groups():
    """Catalog grouped by category: {"Produtos": [{"key", "label"}, ...], ...}."""
    return {
        category: [
            {"key": key, "label": label}
            for key, label, _ in get_permissions_by_category(category)
        ]
        for category in CATEGORY_ORDER
    }


def get_permission_definition(key):
    """Get full definition for a permission key."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == key:
            return {
                "key": perm[0],
                "label": perm[1],
                "category": perm[2],
            }
    return None


def validate_permission_key(key):
    """Check if a permission key is part of the catalog."""
    return key in get_all_permission_keys()
