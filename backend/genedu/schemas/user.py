"""
GenEdu Backend — Admin User Schemas
=====================================

What:  Request and response models for /admin/users/{id}.

Security:
    UserResponse has no password field, so a password hash can never be
    serialized no matter what the ORM row holds.
"""

from datetime import datetime
from typing import Optional


from genedu.models.user import User
from genedu.schemas.common import CamelModel


class UserUpdateRequest(CamelModel):
    """
    Partial update sent by an admin.

    Every field is optional; only fields present in the JSON body are
    applied (see model_fields_set). role and email are plain strings here
    so that invalid values produce the API's 400 envelope from the service
    layer rather than a schema error.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_verified: Optional[bool] = None
    status: Optional[str] = None


class UserResponse(CamelModel):
    user_id: str
    name: str
    email: str
    role: str
    is_verified: bool
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            user_id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            is_verified=user.is_verified,
            status=user.status,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse
