# Overview: Auth gateway actions (login, validate, logout, manage_permissions).

"""
Auth Gateway

One entry point per action. Each action is independent; the only state
carried between calls is the bearer token the client sends back.

Response shapes are what the back-office client stores and reads:
- login:    {success, token, user, permissions, expiresAt}
- validate: {valid, user, permissions, expiresAt}
- logout:   {success}
- manage_permissions: {success, role_id, permissions}

Failures are raised as errors from pdv.errors; the route turns them into
status codes.
"""

from __future__ import annotations

from ..errors import (
    AccountDisabled,
    Forbidden,
    InvalidCredentials,
    NotFound,
    SessionExpired,
    SessionInvalid,
    ValidationError,
)
from ..extensions import db
from ..models import InternalRole, InternalUser
from ..permissions import MANAGE_PERMISSIONS
from ..validation import coerce_int
from pdv.time_utils import to_utc_z
from . import auth_service, permission_service, session_service
from .concurrency import run_in_transaction


ACTIONS = ("login", "validate", "logout", "manage_permissions")


def _text_field(body: dict, key: str) -> str | None:
    """Credential and token fields are strings when present."""
    value = body.get(key)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Campo inválido: {key}")
    return value


def _user_payload(user: InternalUser) -> dict:
    return {
        "user": user.to_snapshot(),
        "permissions": permission_service.resolve_permissions(user.role_id),
    }


def login(username: str | None, password: str | None, ip_address: str | None = None) -> dict:
    """
    Verify credentials, open a session, and return the client payload.

    Failed attempts are recorded as LOGIN_FAILED security events before the
    error propagates. The session row and last_login commit together.
    """
    try:
        user = auth_service.authenticate(username, password)
    except (InvalidCredentials, AccountDisabled) as exc:
        known = auth_service.get_user_by_username(username)
        permission_service.log_security_event(
            user_id=known.id if known else None,
            event_type="LOGIN_FAILED",
            success=False,
            action="login",
            reason=type(exc).__name__,
            ip_address=ip_address,
        )
        raise

    def _open():
        session, token = session_service.open_session(user.id)
        auth_service.record_login(user)
        return session, token

    session, token = run_in_transaction(_open)

    payload = {"success": True, "token": token}
    payload.update(_user_payload(user))
    payload["expiresAt"] = to_utc_z(session.expires_at)
    return payload


def require_session(token: str | None) -> session_service.SessionContext:
    """
    Resolve token to a live session context or raise.

    - missing token      -> ValidationError (400)
    - unknown token      -> SessionInvalid (401)
    - expired token      -> SessionExpired (401), row removed
    - deactivated user   -> AccountDisabled (403)
    """
    if not token:
        raise ValidationError("Token não fornecido")

    result = session_service.validate_session(token)
    if result.valid:
        return result.context

    if result.reason == session_service.REASON_EXPIRED:
        raise SessionExpired("Sessão expirada")
    if result.reason == session_service.REASON_USER_INACTIVE:
        raise AccountDisabled("Usuário desativado")
    raise SessionInvalid("Sessão inválida")


def validate(token: str | None) -> dict:
    """Validate token; permissions are re-read from storage on every call."""
    context = require_session(token)

    payload = {"valid": True}
    payload.update(_user_payload(context.user))
    payload["expiresAt"] = to_utc_z(context.expires_at)
    return payload


def logout(token: str | None) -> dict:
    """Idempotent: unknown or missing tokens still succeed."""
    session_service.revoke_session(token)
    return {"success": True}


def manage_permissions(
    token: str | None,
    role_id,
    updates,
    ip_address: str | None = None,
) -> dict:
    """
    Update a role's permission flags on behalf of the token's user.

    Caller must be master or hold permissions.manage. The master role's
    permissions are immutable.
    """
    context = require_session(token)
    actor = context.user

    permission_service.require_permission(
        actor,
        MANAGE_PERMISSIONS,
        resource="internal-auth:manage_permissions",
        ip_address=ip_address,
    )

    if role_id is None or role_id == "":
        raise ValidationError("role_id é obrigatório")
    if updates is None:
        raise ValidationError("permissions é obrigatório")

    role = db.session.get(InternalRole, coerce_int(role_id, "role_id"))
    if role is None:
        raise NotFound("Cargo não encontrado")
    if role.is_master:
        raise Forbidden("Não é possível editar permissões do cargo Master")

    permissions = permission_service.set_permissions(role.id, updates)

    permission_service.log_security_event(
        user_id=actor.id,
        event_type="PERMISSIONS_UPDATED",
        success=True,
        resource=f"internal_roles:{role.id}",
        action=MANAGE_PERMISSIONS,
        reason=", ".join(sorted(updates)) if isinstance(updates, dict) else None,
        ip_address=ip_address,
    )

    return {"success": True, "role_id": role.id, "permissions": permissions}


def dispatch(body: dict, ip_address: str | None = None) -> dict:
    """Route an RPC body {action, ...} to its action."""
    if not isinstance(body, dict):
        raise ValidationError("Corpo da requisição inválido")

    action = body.get("action")

    if action == "login":
        return login(_text_field(body, "username"), _text_field(body, "password"), ip_address=ip_address)
    if action == "validate":
        return validate(_text_field(body, "token"))
    if action == "logout":
        return logout(_text_field(body, "token"))
    if action == "manage_permissions":
        return manage_permissions(
            _text_field(body, "token"),
            body.get("role_id"),
            body.get("permissions"),
            ip_address=ip_address,
        )

    raise ValidationError("Ação inválida")
