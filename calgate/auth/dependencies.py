"""FastAPI dependencies for authentication."""

from typing import Optional
from fastapi import Depends, HTTPException, status, Cookie
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from calgate.database.database import get_db
from calgate.database.user_repository import UserRepository
from calgate.auth.jwt import get_user_id_from_token
from calgate.models.user import User

SESSION_COOKIE = "calgate_session"

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_session_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session_cookie: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
) -> Optional[str]:
    """Resolve the session from a bearer token or the session cookie.

    Returns:
        User ID of the session, or None when there is no valid session
    """
    token = credentials.credentials if credentials else session_cookie
    if not token:
        return None
    return get_user_id_from_token(token)


def get_current_user(
    user_id: Optional[str] = Depends(get_session_user_id),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from the session.

    Raises:
        HTTPException: If there is no valid session or the user no longer exists
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = UserRepository(db).get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
