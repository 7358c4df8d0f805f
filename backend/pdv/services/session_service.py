# Overview: Service-layer operations for internal sessions; token issue, validation, revocation.

"""
Session Token Management Service

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Fixed window from login (SESSION_TTL_HOURS, default 8); never extended
  by activity
- Expired or orphaned rows are deleted when they are presented
- Revocable on logout, deactivation or password change
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError
from ..extensions import db
from ..models import InternalSession, InternalUser
from pdv.time_utils import as_utc_naive, utcnow


DEFAULT_SESSION_TTL_HOURS = 8

REASON_NOT_FOUND = "not_found"
REASON_EXPIRED = "expired"
REASON_ORPHANED = "orphaned"
REASON_USER_INACTIVE = "user_inactive"


@dataclass
class SessionContext:
    """Everything a protected request needs about its caller."""
    user: InternalUser
    session: InternalSession
    expires_at: datetime


@dataclass
class SessionValidation:
    valid: bool
    context: SessionContext | None = None
    reason: str | None = None


def session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", DEFAULT_SESSION_TTL_HOURS))


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)  # 32 bytes = 64 hex characters


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy (unlike passwords), so a fast hash is
    sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def open_session(user_id: int) -> tuple[InternalSession, str]:
    """
    Stage a new session row in the current unit of work without committing.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = InternalSession(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + session_ttl(),
    )
    db.session.add(session)
    db.session.flush()

    return session, plaintext_token


def create_session(user_id: int) -> tuple[InternalSession, str]:
    """
    Create and commit a new session for user.

    Raises PersistenceError if the row cannot be written.
    """
    try:
        session, plaintext_token = open_session(user_id)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Erro ao criar sessão") from exc

    return session, plaintext_token


def _delete(session: InternalSession) -> None:
    db.session.delete(session)
    db.session.commit()


def validate_session(token: str) -> SessionValidation:
    """
    Validate session token.

    - unknown token          -> invalid, "not_found"
    - expires_at < now       -> row deleted, invalid, "expired"
    - user row gone          -> row deleted, invalid, "orphaned"
    - user deactivated       -> invalid, "user_inactive"

    Never touches expires_at on success. Central validation point; all
    protected routes call this.
    """
    if not token:
        return SessionValidation(valid=False, reason=REASON_NOT_FOUND)

    session = db.session.query(InternalSession).filter_by(token_hash=hash_token(token)).first()

    if not session:
        return SessionValidation(valid=False, reason=REASON_NOT_FOUND)

    if as_utc_naive(session.expires_at) < utcnow():
        _delete(session)
        return SessionValidation(valid=False, reason=REASON_EXPIRED)

    user = session.user
    if user is None:
        _delete(session)
        return SessionValidation(valid=False, reason=REASON_ORPHANED)

    if not user.is_active:
        return SessionValidation(valid=False, reason=REASON_USER_INACTIVE)

    return SessionValidation(
        valid=True,
        context=SessionContext(user=user, session=session, expires_at=session.expires_at),
    )


def revoke_session(token: str) -> bool:
    """
    Delete the session for token.

    Returns True if a row was deleted, False if there was none. Callers
    treat both as success.
    """
    if not token:
        return False

    session = db.session.query(InternalSession).filter_by(token_hash=hash_token(token)).first()

    if not session:
        return False

    _delete(session)
    return True


def revoke_user_sessions(user_id: int) -> int:
    """
    Delete every session a user holds.

    Returns count of sessions deleted.
    """
    deleted = db.session.query(InternalSession).filter_by(user_id=user_id).delete()
    db.session.commit()
    return deleted


def cleanup_expired_sessions() -> int:
    """
    Delete all expired sessions.

    Returns count of sessions deleted. Validation already removes expired
    rows it sees; this sweeps the ones nobody presents again.
    """
    deleted = db.session.query(InternalSession).filter(
        InternalSession.expires_at < utcnow()
    ).delete()

    db.session.commit()
    return deleted
