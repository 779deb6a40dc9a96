"""
GenEdu Backend — Token Verification
=====================================

What:  Decodes the HS256 JWT carried in the auth cookies into a caller payload.
How:   python-jose verifies signature and expiry with settings.jwt_secret.
Who:   Called by the auth dependencies in genedu.dependencies.

Token payload (claims issued by the login service):
    {"userId": "u1", "email": "a@b.c", "role": "student", "exp": 1700000000}
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from genedu.config import settings
from genedu.schemas.common import CamelModel

logger = logging.getLogger(__name__)


class TokenPayload(CamelModel):
    """Verified caller identity. user_id is always non-empty."""

    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a token with the shared secret.

    Tokens are issued by the login service; this helper signs with the
    same secret for local tooling and tests.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str]) -> Optional[TokenPayload]:
    """
    Verify a token and return its payload, or None when it is unusable.

    None is returned for: empty token, bad signature, expired token,
    or a payload without a userId.
    """
    if not token:
        return None

    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug("Token rejected: %s", str(e))
        return None

    if not claims.get("userId"):
        logger.debug("Token rejected: no userId claim")
        return None

    try:
        return TokenPayload.model_validate(claims)
    except PydanticValidationError:
        logger.debug("Token rejected: malformed claims")
        return None
