"""
GenEdu Backend — User SQLAlchemy Model
========================================

What:  ORM model for the `users` table managed through the admin API.
Who:   Used by AdminUserService and the admin token check.

Invariants:
    - email is unique and stored lower-cased
    - at least one user with role='admin' exists (checked on delete only)
    - password holds a hash and is never serialized by any response schema
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from genedu.database import Base
from genedu.models.types import utcnow

ROLES = ("student", "teacher", "admin")
ADMIN_ROLE = "admin"


class User(Base):
    """An account that can own notebooks; admins manage the others."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="student",
        comment="One of: student, teacher, admin",
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default="active")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_users_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<User(user_id='{self.user_id}', role='{self.role}')>"
