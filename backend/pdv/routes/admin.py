# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

"""
Admin routes for internal users, roles and the permission catalog.

Role permission flags are written through the internal-auth gateway
(action manage_permissions); this blueprint only reads them.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..permissions import CATEGORY_ORDER, get_permission_groups
from ..services import auth_service, permission_service, role_service

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _include_inactive() -> bool:
    return request.args.get("include_inactive", "true").lower() == "true"


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_permission("users.view")
def list_users():
    users = auth_service.list_users(include_inactive=_include_inactive())
    return jsonify({"users": [u.to_dict() for u in users], "count": len(users)}), 200


@admin_bp.get("/users/<int:user_id>")
@require_auth
@require_permission("users.view")
def get_user(user_id: int):
    return jsonify({"user": auth_service.get_user(user_id).to_dict()}), 200


@admin_bp.post("/users")
@require_auth
@require_permission("users.create")
def create_user():
    """
    Create an internal user.

    Body: {username, password, full_name, role_id?, is_active?}
    """
    data = request.get_json(silent=True) or {}
    user = auth_service.create_user(
        username=data.get("username"),
        password=data.get("password"),
        full_name=data.get("full_name"),
        role_id=data.get("role_id"),
        is_active=data.get("is_active", True),
    )
    return jsonify({"user": user.to_dict()}), 201


@admin_bp.patch("/users/<int:user_id>")
@require_auth
@require_permission("users.edit")
def update_user(user_id: int):
    """A password change or deactivation ends the user's open sessions."""
    data = request.get_json(silent=True) or {}
    user = auth_service.update_user(user_id, data)
    return jsonify({"user": user.to_dict()}), 200


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_permission("users.delete")
def delete_user(user_id: int):
    auth_service.delete_user(user_id)
    return jsonify({"success": True}), 200


# =============================================================================
# ROLE MANAGEMENT
# =============================================================================

@admin_bp.get("/roles")
@require_auth
@require_permission("roles.view")
def list_roles():
    roles = role_service.list_roles(include_inactive=_include_inactive())
    return jsonify({"roles": [r.to_dict() for r in roles], "count": len(roles)}), 200


@admin_bp.post("/roles")
@require_auth
@require_permission("roles.create")
def create_role():
    """New roles start with every permission set to false."""
    data = request.get_json(silent=True) or {}
    role = role_service.create_role(
        name=data.get("name"),
        description=data.get("description"),
        is_active=data.get("is_active", True),
    )
    return jsonify({
        "role": role.to_dict(),
        "permissions": permission_service.resolve_permissions(role.id),
    }), 201


@admin_bp.patch("/roles/<int:role_id>")
@require_auth
@require_permission("roles.edit")
def update_role(role_id: int):
    data = request.get_json(silent=True) or {}
    role = role_service.update_role(role_id, data)
    return jsonify({"role": role.to_dict()}), 200


@admin_bp.delete("/roles/<int:role_id>")
@require_auth
@require_permission("roles.delete")
def delete_role(role_id: int):
    role_service.delete_role(role_id)
    return jsonify({"success": True}), 200


@admin_bp.get("/roles/<int:role_id>/permissions")
@require_auth
@require_permission("roles.view")
def get_role_permissions(role_id: int):
    role = role_service.get_role(role_id)
    return jsonify({
        "role": role.to_summary(),
        "permissions": permission_service.resolve_permissions(role.id),
    }), 200


# =============================================================================
# PERMISSION CATALOG
# =============================================================================

@admin_bp.get("/permissions")
@require_auth
def list_permissions():
    """The fixed catalog, grouped by category in display order."""
    groups = get_permission_groups()
    return jsonify({
        "categories": [
            {"category": category, "permissions": groups.get(category, [])}
            for category in CATEGORY_ORDER
        ],
    }), 200
