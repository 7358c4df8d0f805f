# Overview: Service-layer operations for internal users; password hashing and credential checks.

"""
Internal user accounts and credential verification.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Passwords are limited to PASSWORD_MAX_LENGTH characters (default 8).
  This is a legacy compatibility constraint of the back-office, not a
  strength policy; the length gate runs before any lookup.
- Unknown username and wrong password fail with the same message
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
from flask import current_app

from ..errors import AccountDisabled, Forbidden, InvalidCredentials, NotFound, ValidationError
from ..extensions import db
from ..models import InternalRole, InternalUser
from ..validation import coerce_int
from pdv.time_utils import utcnow
from . import session_service


DEFAULT_PASSWORD_MAX_LENGTH = 8
DEFAULT_BCRYPT_ROUNDS = 12

INVALID_CREDENTIALS_MESSAGE = "Usuário ou senha inválidos"
ACCOUNT_DISABLED_MESSAGE = "Usuário desativado. Contate o administrador."

USER_MUTABLE_FIELDS = {"username", "full_name", "role_id", "is_active", "password"}

# Compared against when the username does not exist, so both failure paths
# pay for one bcrypt check.
_DUMMY_HASH = bcrypt.hashpw(b"pdv-dummy", bcrypt.gensalt(rounds=4)).decode("utf-8")


def _password_max_length() -> int:
    return current_app.config.get("PASSWORD_MAX_LENGTH", DEFAULT_PASSWORD_MAX_LENGTH)


def normalize_username(username: str) -> str:
    """Usernames are case-insensitive and whitespace-trimmed."""
    return (username or "").strip().lower()


def validate_password(password: str) -> None:
    """
    Raise ValidationError unless password is non-empty and within the
    legacy maximum length.
    """
    if not password:
        raise ValidationError("Senha é obrigatória")
    if not isinstance(password, str):
        raise ValidationError("Campo inválido: password")
    max_length = _password_max_length()
    if len(password) > max_length:
        raise ValidationError(f"Senha deve ter no máximo {max_length} caracteres")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password length is validated before hashing.
    """
    validate_password(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including for
    malformed hashes). bcrypt.checkpw() is timing-safe.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def get_user_by_username(username: str) -> InternalUser | None:
    return db.session.query(InternalUser).filter_by(username=normalize_username(username)).first()


def authenticate(username: str, password: str) -> InternalUser:
    """
    Verify credentials and return the user.

    Order of checks:
    1. both fields present (ValidationError)
    2. password length gate, before any lookup (ValidationError)
    3. user exists (InvalidCredentials)
    4. user is active (AccountDisabled), before the password is checked
    5. password matches (InvalidCredentials, same message as 3)
    """
    if not username or not password:
        raise ValidationError("Usuário e senha são obrigatórios")

    validate_password(password)

    user = get_user_by_username(username)

    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

    if not user.is_active:
        raise AccountDisabled(ACCOUNT_DISABLED_MESSAGE)

    if not verify_password(password, user.password_hash):
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

    return user


def record_login(user: InternalUser) -> None:
    """Stamp last_login; committed by the caller with the new session."""
    user.last_login = utcnow()


def _clean_role_id(role_id) -> int | None:
    if role_id in (None, ""):
        return None
    return coerce_int(role_id, "role_id")


def _require_role(role_id: int | None) -> InternalRole | None:
    if role_id is None:
        return None
    role = db.session.get(InternalRole, role_id)
    if role is None:
        raise NotFound("Cargo não encontrado")
    return role


def _require_unique_username(username: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(InternalUser).filter(InternalUser.username == username)
    if exclude_user_id is not None:
        query = query.filter(InternalUser.id != exclude_user_id)
    if query.first():
        raise ValidationError("Nome de usuário já existe")


def get_user(user_id: int) -> InternalUser:
    user = db.session.get(InternalUser, user_id)
    if user is None:
        raise NotFound("Usuário não encontrado")
    return user


def list_users(include_inactive: bool = True) -> list[InternalUser]:
    query = db.session.query(InternalUser)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(InternalUser.full_name).all()


def create_user(
    username: str,
    password: str,
    full_name: str,
    role_id: int | None = None,
    is_active: bool = True,
) -> InternalUser:
    """
    Create an internal user with a bcrypt password hash.

    Raises:
        ValidationError: missing/blank fields, password too long, duplicate username
        NotFound: role_id does not exist
    """
    username = normalize_username(username)
    full_name = (full_name or "").strip()

    if not username:
        raise ValidationError("Nome de usuário é obrigatório")
    if not full_name:
        raise ValidationError("Nome completo é obrigatório")

    _require_unique_username(username)
    role_id = _clean_role_id(role_id)
    _require_role(role_id)

    user = InternalUser(
        username=username,
        password_hash=hash_password(password),
        full_name=full_name,
        role_id=role_id,
        is_active=bool(is_active),
    )

    db.session.add(user)
    db.session.commit()
    return user


def update_user(user_id: int, changes: dict) -> InternalUser:
    """
    Apply an admin edit.

    A password change or a deactivation revokes every session the user
    holds.
    """
    user = get_user(user_id)

    unknown = set(changes) - USER_MUTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    revoke_sessions = False

    if "username" in changes:
        username = normalize_username(changes["username"])
        if not username:
            raise ValidationError("Nome de usuário é obrigatório")
        _require_unique_username(username, exclude_user_id=user.id)
        user.username = username

    if "full_name" in changes:
        full_name = (changes["full_name"] or "").strip()
        if not full_name:
            raise ValidationError("Nome completo é obrigatório")
        user.full_name = full_name

    if "role_id" in changes:
        role_id = _clean_role_id(changes["role_id"])
        if user.is_master and not _is_master_role_id(role_id):
            raise Forbidden("Não é possível alterar o cargo de um Admin Master")
        _require_role(role_id)
        user.role_id = role_id

    if "is_active" in changes:
        is_active = bool(changes["is_active"])
        if not is_active and user.is_master:
            raise Forbidden("Não é possível desativar um Admin Master")
        if user.is_active and not is_active:
            revoke_sessions = True
        user.is_active = is_active

    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])
        revoke_sessions = True

    db.session.commit()

    if revoke_sessions:
        session_service.revoke_user_sessions(user.id)

    return user


def _is_master_role_id(role_id: int | None) -> bool:
    if role_id is None:
        return False
    role = db.session.get(InternalRole, role_id)
    return bool(role and role.is_master)


def delete_user(user_id: int) -> None:
    """Hard-delete a user. Master role holders are never deleted."""
    user = get_user(user_id)
    if user.is_master:
        raise Forbidden("Não é possível excluir um Admin Master")

    # Sessions go with the user (ORM cascade)
    db.session.delete(user)
    db.session.commit()
