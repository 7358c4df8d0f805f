# Overview: Service-layer operations for permissions; resolution, checks, and role permission edits.

"""
Permission Resolution and Security Event Logging

DESIGN PRINCIPLES:
- Fail closed: a key with no stored row is not allowed
- Master is its own case (MasterAccess), never a set of stored rows; it
  allows every key, including keys that were never inserted
- Log denials only: permission grants are not logged
- Always read from storage: nothing is cached in the session token
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import Forbidden, NotFound, ValidationError
from ..extensions import db
from ..models import InternalPermission, InternalRole, InternalUser, SecurityEvent
from ..permissions import get_all_permission_keys, validate_permission_key
from pdv.time_utils import utcnow


@dataclass(frozen=True)
class MasterAccess:
    """Master role: every permission-gated action is allowed."""
    is_master = True

    def allows(self, key: str) -> bool:
        return True


@dataclass(frozen=True)
class StandardAccess:
    """Any other role (or no role): exactly the stored allowed keys."""
    permissions: dict[str, bool] = field(default_factory=dict)
    is_master = False

    def allows(self, key: str) -> bool:
        return bool(self.permissions.get(key, False))


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - LOGIN_FAILED
    - PERMISSION_DENIED
    - PERMISSIONS_UPDATED
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def resolve_permissions(role_id: int | None) -> dict[str, bool]:
    """
    Stored permission map for a role: {"sales.view": True, ...}.

    Keys with no row are absent (callers treat absent as False).
    """
    if role_id is None:
        return {}

    rows = db.session.query(InternalPermission).filter_by(role_id=role_id).all()
    return {row.permission_key: row.allowed for row in rows}


def access_for(user: InternalUser) -> MasterAccess | StandardAccess:
    if user.role is not None and user.role.is_master:
        return MasterAccess()
    return StandardAccess(permissions=resolve_permissions(user.role_id))


def has_permission(user: InternalUser, key: str) -> bool:
    """
    Check if user may perform the action gated by key.

    Master short-circuits to True; otherwise the stored value, or False
    for unknown and absent keys.
    """
    return access_for(user).allows(key)


def require_permission(
    user: InternalUser,
    key: str,
    resource: str | None = None,
    ip_address: str | None = None,
) -> None:
    """
    Require user to have permission, raise Forbidden if not.

    Denials are written to security_events.
    """
    if has_permission(user, key):
        return

    log_security_event(
        user_id=user.id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=key,
        reason=f"Missing permission: {key}",
        ip_address=ip_address,
    )
    raise Forbidden("Permissão negada")


def _coerce_updates(updates: dict) -> dict[str, bool]:
    if not isinstance(updates, dict):
        raise ValidationError("permissions deve ser um objeto {chave: booleano}")

    cleaned: dict[str, bool] = {}
    for key, allowed in updates.items():
        if not validate_permission_key(key):
            raise ValidationError(f"Permissão desconhecida: {key}")
        if not isinstance(allowed, bool):
            raise ValidationError(f"Valor inválido para {key}: use true ou false")
        cleaned[key] = allowed
    return cleaned


def set_permissions(role_id: int, updates: dict, commit: bool = True) -> dict[str, bool]:
    """
    Upsert permission flags for a role.

    Partial update: keys not listed in updates keep their stored value.
    The master role has no editable permissions; the gateway rejects it
    first, this is the second check.

    Returns the role's full stored map after the update.
    """
    role = db.session.get(InternalRole, role_id)
    if role is None:
        raise NotFound("Cargo não encontrado")
    if role.is_master:
        raise Forbidden("Não é possível editar permissões do cargo Master")

    cleaned = _coerce_updates(updates)

    existing = {
        row.permission_key: row
        for row in db.session.query(InternalPermission).filter_by(role_id=role_id).all()
    }

    for key, allowed in cleaned.items():
        row = existing.get(key)
        if row:
            row.allowed = allowed
        else:
            db.session.add(InternalPermission(role_id=role_id, permission_key=key, allowed=allowed))

    if commit:
        db.session.commit()
    else:
        db.session.flush()

    return resolve_permissions(role_id)


def seed_role_permissions(role_id: int) -> int:
    """
    Insert every catalog key with allowed=False for a role.

    Idempotent: keys that already have a row are skipped. Flushes only; the
    caller commits together with the role it just created.
    """
    existing = {
        key for (key,) in db.session.query(InternalPermission.permission_key).filter_by(role_id=role_id).all()
    }

    created_count = 0
    for key in get_all_permission_keys():
        if key in existing:
            continue
        db.session.add(InternalPermission(role_id=role_id, permission_key=key, allowed=False))
        created_count += 1

    db.session.flush()
    return created_count
