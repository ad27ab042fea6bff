# app/utils/controller.py
"""
Helpers every endpoint shares: pagination parsing, id validation,
role/ownership checks and mapping service errors to HTTP statuses.
"""
import logging
from typing import Any, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..config import settings
from .errors import ServiceError
from . import response

logger = logging.getLogger(__name__)


def get_pagination(page: Optional[int] = None, limit: Optional[int] = None) -> Tuple[int, int]:
    """page < 1 becomes 1, limit is clamped to 1..MAX_PAGE_SIZE"""
    page = page if page and page > 0 else 1
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    limit = max(1, min(int(limit), settings.MAX_PAGE_SIZE))
    return page, limit


def parse_id(value: Any, label: str = "ID") -> int:
    """Validate a path/body identifier, 400 when it is not a positive integer"""
    try:
        parsed = int(str(value))
    except (TypeError, ValueError):
        response.bad_request(f"Invalid {label}")
    if parsed < 1:
        response.bad_request(f"Invalid {label}")
    return parsed


def is_admin(user) -> bool:
    return bool(user is not None and (user.is_superuser or user.role == "admin"))


def require_user(user):
    if user is None:
        response.unauthorized()
    return user


def require_admin(user):
    require_user(user)
    if not is_admin(user):
        response.forbidden("Admin access required")
    return user


def check_ownership(owner_id: Optional[int], user, resource: str = "resource", allow_admin: bool = False) -> None:
    if owner_id == user.id:
        return
    if allow_admin and is_admin(user):
        return
    response.forbidden(f"You can only modify your own {resource}")


def handle_service_error(
    db: Optional[Session],
    exc: Exception,
    default_message: str,
    **context: Any,
) -> HTTPException:
    """
    Roll back and turn an exception into the HTTPException to raise.
    Known service errors keep their message; anything else is logged with
    context and hidden behind default_message.
    """
    if db is not None:
        db.rollback()

    if isinstance(exc, HTTPException):
        return exc

    if isinstance(exc, ServiceError):
        logger.warning(f"⚠️ {default_message}: {exc.message} {context or ''}")
        return HTTPException(status_code=exc.status_code, detail=exc.message)

    logger.error(f"❌ {default_message}: {exc} {context or ''}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=default_message,
    )
