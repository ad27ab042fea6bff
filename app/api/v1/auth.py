# app/api/v1/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime
import logging

from ...database import get_db
from ...models.user import User, UserRole
from ...schemas.user import UserCreate, UserLogin, UserOut, Token
from ...utils.security import create_access_token, verify_password, get_password_hash, validate_password_strength
from ...utils.controller import handle_service_error
from ...utils import response
from ..deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_for(user: User) -> Token:
    token = create_access_token(user.id, role=user.role)
    return Token(access_token=token, user=UserOut.model_validate(user))


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    try:
        is_valid, message = validate_password_strength(payload.password)
        if not is_valid:
            response.bad_request(message)

        email = payload.email.lower()
        if db.query(User.id).filter(User.email == email).first():
            response.bad_request("Email already registered")

        user = User(
            email=email,
            hashed_password=get_password_hash(payload.password),
            full_name=payload.full_name,
            role=UserRole.USER.value,
            last_login=datetime.utcnow(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"✅ New user registered: {user.email}")
        return response.created(_token_for(user), "Registration successful")

    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Registration failed")


@router.post("/login")
def login(payload: UserLogin, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.email == payload.email.lower()).first()
        if not user or not verify_password(payload.password, user.hashed_password):
            logger.warning(f"⚠️ Failed login attempt for {payload.email}")
            response.unauthorized("Invalid email or password")

        if not user.is_active:
            response.forbidden("Account is disabled")

        user.last_login = datetime.utcnow()
        db.commit()

        logger.info(f"✅ User logged in: {user.email}")
        return response.success(_token_for(user), "Login successful")

    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Login failed")


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return response.success(UserOut.model_validate(current_user), "User retrieved successfully")
