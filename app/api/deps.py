# app/api/deps.py
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, ExpiredSignatureError
from ..database import get_db
from ..utils.security import decode_access_token
from ..utils import response
from ..utils.controller import require_admin
from ..models.user import User

# auto_error=False so a missing header gets our 401 envelope instead of 403
security = HTTPBearer(auto_error=False)


def _user_from_token(db: Session, token: str) -> User:
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")

        if user_id is None:
            response.unauthorized("Could not validate credentials")

        try:
            user_id = int(user_id)
        except (ValueError, TypeError):
            response.unauthorized("Invalid token format")

    except ExpiredSignatureError:
        # Token has expired - return 401, not 500
        response.unauthorized("Token has expired")

    except JWTError:
        response.unauthorized("Could not validate credentials")

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        response.unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """
    Get current authenticated user from JWT token.
    Expired and invalid tokens give 401, never 500.
    """
    if credentials is None:
        response.unauthorized()
    return _user_from_token(db, credentials.credentials)


def get_current_user_optional(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[User]:
    """Same as get_current_user but anonymous requests get None"""
    if credentials is None:
        return None
    return _user_from_token(db, credentials.credentials)


def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    return require_admin(current_user)
