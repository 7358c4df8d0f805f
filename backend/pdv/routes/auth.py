# Overview: Internal auth gateway endpoint; one POST body per action.

"""
POST /api/internal-auth

Body: {action, username?, password?, token?, role_id?, permissions?}
action is one of login | validate | logout | manage_permissions.

Status codes: 200 success, 400 bad input, 401 bad credentials or session,
403 disabled account or missing permission, 404 unknown role,
500 internal failure.
"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import PdvError, PersistenceError
from ..services import gateway_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api")

INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"


@auth_bp.route("/internal-auth", methods=["POST", "OPTIONS"])
def internal_auth_route():
    if request.method == "OPTIONS":
        return current_app.response_class(status=200)

    body = request.get_json(silent=True)
    action = body.get("action") if isinstance(body, dict) else None

    try:
        return jsonify(gateway_service.dispatch(body, ip_address=request.remote_addr)), 200

    except PersistenceError:
        current_app.logger.exception("Storage failure during internal-auth action %s", action)
        return jsonify({"error": INTERNAL_ERROR_MESSAGE}), 500

    except PdvError as exc:
        if action == "login":
            current_app.logger.warning(
                "Rejected login for %r from %s: %s",
                body.get("username"), request.remote_addr, exc.message,
            )
        payload = exc.to_dict()
        if action == "validate":
            payload["valid"] = False
        return jsonify(payload), exc.status_code

    except Exception:
        current_app.logger.exception("Unexpected failure during internal-auth action %s", action)
        return jsonify({"error": INTERNAL_ERROR_MESSAGE}), 500
