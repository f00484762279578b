"""
Authentication models: users, roles and revocable login sessions.
"""

from __future__ import annotations

import enum
from typing import List
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    func,
)

from agrihub.core.database import Base


class UserRole(str, enum.Enum):
    """User roles for RBAC, declared from most to least privileged."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        """Position in the privilege order; 0 is the most privileged."""
        return list(UserRole).index(self)

    @classmethod
    def values(cls) -> List[str]:
        return [role.value for role in cls]

    @classmethod
    def at_least(cls, role: "UserRole | str") -> List["UserRole"]:
        """Roles holding ``role``'s privilege or more."""
        minimum = cls(role)
        return [candidate for candidate in cls if candidate.rank <= minimum.rank]


class User(Base):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(Text, nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(
        String(50), nullable=False, default=UserRole.ADMIN.value, index=True
    )
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('super_admin', 'admin', 'editor', 'viewer')", name="ck_users_role"
        ),
    )

    def __repr__(self) -> str:
        return f"<User(email={self.email}, role={self.role})>"


class UserSession(Base):
    """Server-side, revocable counterpart of an issued session token."""

    __tablename__ = "sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # SHA-256 of the issued token; the raw token is never stored.
    token_hash = Column(String(255), nullable=False)
    ip_address = Column(String(45))
    user_agent = Column(Text)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_sessions_user", "user_id"),
        Index("idx_sessions_expires", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<UserSession(id={self.id}, user_id={self.user_id})>"
