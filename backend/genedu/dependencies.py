"""
GenEdu Backend — Authentication Dependencies
==============================================

What:  FastAPI dependencies that turn cookies into a verified caller.
How:   get_current_user reads the `auth-token` cookie; get_current_admin
       runs the stricter admin check. Both raise AuthenticationError (401).
Who:   Injected into the notebook and admin route handlers.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from genedu.config import settings
from genedu.database import get_db_session
from genedu.exceptions import AuthenticationError
from genedu.models.user import ADMIN_ROLE, User
from genedu.security import TokenPayload, verify_token

logger = logging.getLogger(__name__)


async def get_current_user(request: Request) -> TokenPayload:
    """
    Resolve the caller from the auth cookie.

    Raises:
        AuthenticationError("Unauthorized"): cookie missing
        AuthenticationError("Invalid token"): token fails verification
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise AuthenticationError("Unauthorized")

    payload = verify_token(token)
    if payload is None:
        raise AuthenticationError("Invalid token")

    return payload


async def verify_admin_token(request: Request, db: AsyncSession) -> User | None:
    """
    Admin check, distinct from the generic token check.

    The token (admin cookie, falling back to the auth cookie) must verify,
    claim role=admin, and name a stored user who is still an admin. A
    demoted admin's old token therefore stops working immediately.

    Returns:
        The admin User, or None.
    """
    token = request.cookies.get(settings.admin_cookie_name) or request.cookies.get(
        settings.auth_cookie_name
    )
    payload = verify_token(token)
    if payload is None or payload.role != ADMIN_ROLE:
        return None

    result = await db.execute(select(User).where(User.user_id == payload.user_id))
    admin = result.scalar_one_or_none()
    if admin is None or admin.role != ADMIN_ROLE:
        logger.warning("Admin token for %s no longer maps to an admin user", payload.user_id)
        return None
    return admin


async def get_current_admin(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Dependency wrapper around verify_admin_token; raises 401 on failure."""
    admin = await verify_admin_token(request, db)
    if admin is None:
        raise AuthenticationError("Unauthorized")
    return admin
