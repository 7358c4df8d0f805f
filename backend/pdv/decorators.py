# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .errors import PdvError
from .services import gateway_service, permission_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a live internal session.

    Sets on flask.g:
    - g.current_user: the InternalUser
    - g.session_context: the full SessionContext

    Answers 401 without a token or for unknown/expired tokens, 403 for
    deactivated users.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Token não fornecido"}), 401

        try:
            context = gateway_service.require_session(token)
        except PdvError as exc:
            return jsonify(exc.to_dict()), exc.status_code

        g.current_user = context.user
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_key: str):
    """
    Require a permission key. Master users always pass.

    Must be stacked under @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Token não fornecido"}), 401

            try:
                permission_service.require_permission(
                    g.current_user,
                    permission_key,
                    resource=request.path,
                    ip_address=request.remote_addr,
                )
            except PdvError as exc:
                payload = exc.to_dict()
                payload["required_permission"] = permission_key
                return jsonify(payload), exc.status_code

            return f(*args, **kwargs)

        return decorated_function
    return decorator
