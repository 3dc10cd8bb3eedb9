"""
ExamHub - User Models
SQLAlchemy models for user management and authentication
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examhub.core.database import Base

if TYPE_CHECKING:
    from examhub.models.test import Test, TestResult


class UserRole(str, Enum):
    """User roles for RBAC."""
    USER = "USER"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


# Roles allowed to author tests and see answer keys
AUTHOR_ROLES = (UserRole.TEACHER, UserRole.ADMIN)


class User(Base):
    """Account used for authentication, test taking and authoring."""
    
    __tablename__ = "users"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(100))
    role: Mapped[UserRole] = mapped_column(String(20), default=UserRole.USER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    
    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
    
    # Relationships
    tests: Mapped[list["Test"]] = relationship("Test", back_populates="author")
    results: Mapped[list["TestResult"]] = relationship(
        "TestResult",
        back_populates="user",
        cascade="all, delete-orphan"
    )
    
    @property
    def can_author(self) -> bool:
        return self.role in AUTHOR_ROLES


class RefreshToken(Base):
    """Stored refresh tokens for session management."""
    
    __tablename__ = "refresh_tokens"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    token_hash: Mapped[str] = mapped_column(String(255), unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    
    @property
    def is_expired(self) -> bool:
        expires_at = self.expires_at
        # SQLite hands back naive datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) > expires_at
    
    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None
