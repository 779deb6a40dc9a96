"""
GenEdu Backend — Admin User Route Handlers
============================================

What:  PUT / DELETE /admin/users/{user_id}.
How:   get_current_admin enforces the admin check (401 otherwise), then the
       request is delegated to AdminUserService.
Who:   Called by the admin dashboard.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from genedu.database import get_db_session
from genedu.dependencies import get_current_admin
from genedu.models.user import User
from genedu.schemas.common import ErrorResponse, MessageResponse
from genedu.schemas.user import UserEnvelope, UserUpdateRequest
from genedu.services.user_service import admin_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["Admin"])


@router.put(
    "/{user_id}",
    response_model=UserEnvelope,
    responses={
        400: {"description": "Invalid role/email or email already exists", "model": ErrorResponse},
        401: {"description": "Caller is not an admin", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update a user",
)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserEnvelope:
    """Only fields present in the body are written; the password is never returned."""
    user = await admin_user_service.update_user(db, user_id, body, admin_id=admin.user_id)
    return UserEnvelope(message="User updated successfully", user=user)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    responses={
        401: {"description": "Caller is not an admin", "model": ErrorResponse},
        403: {"description": "Target is the last admin", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a user",
)
async def delete_user(
    user_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await admin_user_service.delete_user(db, user_id, admin_id=admin.user_id)
    return MessageResponse(message="User deleted successfully")
