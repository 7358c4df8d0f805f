# Overview: Service-layer operations for internal roles.

from __future__ import annotations

from ..errors import Forbidden, NotFound, ValidationError
from ..extensions import db
from ..models import InternalRole, InternalUser
from .concurrency import run_in_transaction
from . import permission_service


ROLE_MUTABLE_FIELDS = {"name", "description", "is_active"}


def get_role(role_id: int) -> InternalRole:
    role = db.session.get(InternalRole, role_id)
    if role is None:
        raise NotFound("Cargo não encontrado")
    return role


def list_roles(include_inactive: bool = True) -> list[InternalRole]:
    query = db.session.query(InternalRole)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(InternalRole.name).all()


def get_master_role() -> InternalRole | None:
    return db.session.query(InternalRole).filter_by(is_master=True).first()


def _clean_name(name) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Nome do cargo é obrigatório")
    return name


def _require_unique_name(name: str, exclude_role_id: int | None = None) -> None:
    query = db.session.query(InternalRole).filter(db.func.lower(InternalRole.name) == name.lower())
    if exclude_role_id is not None:
        query = query.filter(InternalRole.id != exclude_role_id)
    if query.first():
        raise ValidationError("Já existe um cargo com este nome")


def create_role(name: str, description: str | None = None, is_active: bool = True) -> InternalRole:
    """
    Create a standard role with every catalog permission seeded to False.

    Role and permission rows commit together.
    """
    name = _clean_name(name)
    _require_unique_name(name)

    def _op():
        role = InternalRole(
            name=name,
            description=(description or "").strip() or None,
            is_active=bool(is_active),
            is_master=False,
        )
        db.session.add(role)
        db.session.flush()
        permission_service.seed_role_permissions(role.id)
        return role

    return run_in_transaction(_op)


def create_master_role(name: str = "Master", description: str | None = "Acesso total ao sistema") -> InternalRole:
    """
    Return the master role, creating it if none exists.

    No permission rows are seeded: master access is not stored.
    """
    role = get_master_role()
    if role:
        return role

    role = InternalRole(name=name, description=description, is_master=True, is_active=True)
    db.session.add(role)
    db.session.commit()
    return role


def update_role(role_id: int, changes: dict) -> InternalRole:
    role = get_role(role_id)

    unknown = set(changes) - ROLE_MUTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    if "name" in changes:
        name = _clean_name(changes["name"])
        _require_unique_name(name, exclude_role_id=role.id)
        role.name = name

    if "description" in changes:
        role.description = (changes["description"] or "").strip() or None

    if "is_active" in changes:
        is_active = bool(changes["is_active"])
        if role.is_master and not is_active:
            raise Forbidden("Não é possível desativar o cargo Master")
        role.is_active = is_active

    db.session.commit()
    return role


def delete_role(role_id: int) -> None:
    """
    Delete a standard role and its permission rows.

    Users holding the role are left without a role. The master role is
    never deleted.
    """
    role = get_role(role_id)
    if role.is_master:
        raise Forbidden("Não é possível excluir o cargo Master")

    def _op():
        db.session.query(InternalUser).filter_by(role_id=role.id).update(
            {InternalUser.role_id: None}, synchronize_session="fetch"
        )
        db.session.delete(role)

    run_in_transaction(_op)
