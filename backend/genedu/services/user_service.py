"""
GenEdu Backend — Admin User Service
=====================================

What:  Business logic behind PUT/DELETE /admin/users/{id}.
How:   Validates the request before touching the database, then performs
       one UPDATE or DELETE on the target row.
Who:   Called by the admin route handlers after the admin check passed.

Rules:
    - role must be one of student, teacher, admin
    - email must be well-formed and not used by another user
      (compared lower-cased)
    - the last remaining admin cannot be deleted
    - demoting an admin is allowed and only logged
"""

import logging
import re

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from genedu.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    GenEduError,
    NotFoundError,
    ValidationError,
)
from genedu.models.types import utcnow
from genedu.models.user import ADMIN_ROLE, ROLES, User
from genedu.schemas.user import UserResponse, UserUpdateRequest

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_update(request: UserUpdateRequest) -> None:
    """
    Input checks that need no database access.

    Raises:
        ValidationError: unknown role or malformed email
    """
    fields = request.model_fields_set
    if "role" in fields and request.role is not None and request.role not in ROLES:
        raise ValidationError(message="Invalid role specified", field="role")
    if "email" in fields and request.email is not None and not is_valid_email(request.email.strip()):
        raise ValidationError(message="Invalid email format", field="email")


def build_update_document(request: UserUpdateRequest) -> dict:
    """Column values for the fields present in the request, plus updated_at."""
    fields = request.model_fields_set
    doc = {"updated_at": utcnow()}

    if "name" in fields and request.name is not None:
        doc["name"] = request.name.strip()
    if "email" in fields and request.email is not None:
        doc["email"] = normalize_email(request.email)
    if "role" in fields and request.role is not None:
        doc["role"] = request.role
    if "is_verified" in fields and request.is_verified is not None:
        doc["is_verified"] = request.is_verified
    if "status" in fields:
        doc["status"] = request.status
    return doc


class AdminUserService:
    """
    Admin-only user management.

    Error Handling Strategy:
        Business rule violations raise ValidationError / ConflictError /
        ForbiddenError / NotFoundError; unexpected database failures are
        wrapped in DatabaseError.
    """

    async def _get_user(self, db: AsyncSession, user_id: str, for_update: bool = False) -> User | None:
        query = select(User).where(User.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def update_user(
        self,
        db: AsyncSession,
        user_id: str,
        request: UserUpdateRequest,
        admin_id: str,
    ) -> UserResponse:
        """
        Apply a partial update to one user.

        Workflow:
            1. Validate role and email format (no database write on failure)
            2. Load the target (404 if missing)
            3. Reject an email held by another user
            4. UPDATE only the fields present in the request, plus updated_at
            5. Re-read the row and return it without the password

        Raises:
            ValidationError, ConflictError (→ 400), NotFoundError (→ 404),
            DatabaseError (→ 500)
        """
        validate_update(request)
        logger.info(
            "Admin %s updating user %s (fields: %s)",
            admin_id,
            user_id,
            ", ".join(sorted(request.model_fields_set)) or "none",
        )

        try:
            existing = await self._get_user(db, user_id)
            if existing is None:
                raise NotFoundError(message="User not found", resource="user", resource_id=user_id)

            if existing.role == ADMIN_ROLE and request.role and request.role != ADMIN_ROLE:
                logger.warning("Admin %s is demoting admin %s to %s", admin_id, user_id, request.role)

            if request.email is not None:
                new_email = normalize_email(request.email)
                if new_email != (existing.email or "").lower():
                    result = await db.execute(
                        select(User.user_id).where(
                            User.email == new_email,
                            User.user_id != user_id,
                        )
                    )
                    if result.first() is not None:
                        raise ConflictError(
                            message="Email already exists",
                            context={"user_id": user_id},
                        )

            result = await db.execute(
                update(User)
                .where(User.user_id == user_id)
                .values(**build_update_document(request))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(message="User not found", resource="user", resource_id=user_id)

            result = await db.execute(
                select(User)
                .where(User.user_id == user_id)
                .execution_options(populate_existing=True)
            )
            updated = result.scalar_one()
            return UserResponse.from_model(updated)

        except GenEduError:
            raise
        except Exception as e:
            logger.error("Database error updating user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"user_id": user_id})

    async def delete_user(self, db: AsyncSession, user_id: str, admin_id: str) -> None:
        """
        Delete one user, refusing to remove the last admin.

        The target and, for admin targets, every admin row are read
        FOR UPDATE before counting, so two concurrent admin deletions
        cannot both pass the guard on PostgreSQL.

        Raises:
            NotFoundError (→ 404), ForbiddenError (→ 403), DatabaseError (→ 500)
        """
        try:
            target = await self._get_user(db, user_id, for_update=True)
            if target is None:
                raise NotFoundError(message="User not found", resource="user", resource_id=user_id)

            if target.role == ADMIN_ROLE:
                result = await db.execute(
                    select(User.user_id).where(User.role == ADMIN_ROLE).with_for_update()
                )
                admin_count = len(result.scalars().all())
                if admin_count <= 1:
                    logger.warning("Admin %s tried to delete the last admin %s", admin_id, user_id)
                    raise ForbiddenError(message="Cannot delete the last admin user")

            result = await db.execute(delete(User).where(User.user_id == user_id))
            if result.rowcount == 0:
                raise NotFoundError(message="User not found", resource="user", resource_id=user_id)

            logger.info("Admin %s deleted user %s", admin_id, user_id)

        except GenEduError:
            raise
        except Exception as e:
            logger.error("Database error deleting user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(context={"user_id": user_id})


admin_user_service = AdminUserService()
