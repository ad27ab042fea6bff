# app/utils/response.py
"""
JSON envelopes shared by every endpoint.

Success payloads are plain dicts so FastAPI's encoder handles datetimes and
pydantic models. Error helpers raise HTTPException; the handlers registered
in main.py turn the detail into {"success": false, "message": ...}.
"""
import math
from typing import Any, List, NoReturn, Optional

from fastapi import HTTPException, status
from pydantic.alias_generators import to_camel


def success(data: Any = None, message: str = "Operation successful", **extra: Any) -> dict:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def created(data: Any = None, message: str = "Resource created successfully", **extra: Any) -> dict:
    return success(data, message, **extra)


def paginated(
    items: List[Any],
    page: int,
    limit: int,
    total: int,
    message: str = "Data retrieved successfully",
) -> dict:
    return {
        "success": True,
        "message": message,
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        },
    }


def camelize(value: Any) -> Any:
    """Recursively rename dict keys from snake_case to camelCase"""
    if isinstance(value, dict):
        return {to_camel(k) if isinstance(k, str) else k: camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [camelize(v) for v in value]
    return value


def page_info(page: int, limit: int, total: int) -> dict:
    """Pagination block used by endpoints that nest it inside data"""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasMore": page < total_pages,
    }


# ==================== Errors ====================

def bad_request(message: str = "Bad request") -> NoReturn:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def unauthorized(message: str = "Unauthorized: User not authenticated") -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden(message: str = "Forbidden: You don't have permission to perform this action") -> NoReturn:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


def not_found(message: str = "Resource not found") -> NoReturn:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


def error_body(message: str, errors: Optional[list] = None) -> dict:
    body = {"success": False, "message": message}
    if errors is not None:
        body["data"] = {"errors": errors}
    return body
