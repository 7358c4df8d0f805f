from __future__ import annotations

from ..extensions import db
from pdv.time_utils import to_utc_z


class InternalRole(db.Model):
    """
    Back-office role.

    Exactly one conceptual "master" role exists (is_master=True). It bypasses
    every permission check, cannot be deleted, and has no editable
    permission rows.
    """
    __tablename__ = "internal_roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    is_master = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_summary(self) -> dict:
        """Role shape embedded in login/validate responses."""
        return {
            "id": self.id,
            "name": self.name,
            "is_master": self.is_master,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_master": self.is_master,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InternalUser(db.Model):
    """
    Back-office user account.

    Usernames are stored trimmed and lower-cased; lookups normalize the
    same way so "  Admin " and "admin" are one account.
    """
    __tablename__ = "internal_users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(255), nullable=False)
    role_id = db.Column(db.Integer, db.ForeignKey("internal_roles.id", ondelete="SET NULL"), nullable=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    role = db.relationship("InternalRole", backref=db.backref("users", lazy=True))

    @property
    def is_master(self) -> bool:
        return bool(self.role and self.role.is_master)

    def to_snapshot(self) -> dict:
        """User shape returned by the auth gateway."""
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "role": self.role.to_summary() if self.role else None,
            "isMaster": self.is_master,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "role_id": self.role_id,
            "role": self.role.to_summary() if self.role else None,
            "is_active": self.is_active,
            "last_login": to_utc_z(self.last_login) if self.last_login else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InternalPermission(db.Model):
    """
    One permission flag for one role.

    At most one row per (role_id, permission_key). A key with no row is
    treated as not allowed.
    """
    __tablename__ = "internal_permissions"
    __table_args__ = (
        db.UniqueConstraint("role_id", "permission_key", name="uq_internal_permissions_role_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey("internal_roles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_key = db.Column(db.String(64), nullable=False)
    allowed = db.Column(db.Boolean, nullable=False, default=False)

    role = db.relationship(
        "InternalRole",
        backref=db.backref("permissions", lazy=True, cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role_id": self.role_id,
            "permission_key": self.permission_key,
            "allowed": self.allowed,
        }


class InternalSession(db.Model):
    """
    Login session.

    Only the SHA-256 hash of the bearer token is stored. Sessions are a
    fixed window from creation (expires_at never moves); expired rows are
    deleted lazily when presented.
    """
    __tablename__ = "internal_sessions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("internal_users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship(
        "InternalUser",
        backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "expires_at": to_utc_z(self.expires_at),
            "created_at": to_utc_z(self.created_at),
        }
