"""
Authentication dependencies for route protection.

The application API is administrator-only. Routers opt in with:

    router = APIRouter(dependencies=[Depends(require_admin)])

which runs the check before any handler on the router is invoked.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_token
from app.database import get_db
from app.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AccessDeniedError(HTTPException):
    """Raised when the caller is not an authenticated administrator."""
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account does not have permission to access the API.",
        )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Resolve the principal for the current request from its bearer token.

    Returns None when no token is sent, the token is invalid or expired,
    or the user it names no longer exists.
    """
    if credentials is None:
        return None

    try:
        payload = decode_token(credentials.credentials)
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        return None

    email = payload.get("sub")
    if not email:
        return None

    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def require_admin(
    current_user: Optional[User] = Depends(get_current_user),
) -> User:
    """
    Dependency that only lets administrators through.

    Raises:
        AccessDeniedError: If no user is resolved or the user is not a root admin
    """
    if current_user is None or not current_user.root_admin:
        raise AccessDeniedError()
    return current_user
