import pytest
from fastapi import HTTPException

from app.models.user import User
from app.utils import response
from app.utils.controller import check_ownership, get_pagination, handle_service_error, parse_id
from app.utils.errors import ConflictError, NotFoundError
from app.utils.query import escape_like
from app.utils.security import validate_password_strength


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 20)),
        (0, 10, (1, 10)),
        (-3, 500, (1, 100)),
        (4, 0, (4, 1)),
    ],
)
def test_get_pagination_clamps(page, limit, expected):
    assert get_pagination(page, limit) == expected


@pytest.mark.parametrize("value", ["abc", "0", "-4", None, "1.5"])
def test_parse_id_rejects(value):
    with pytest.raises(HTTPException) as exc:
        parse_id(value, "media ID")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid media ID"


def test_parse_id_accepts_digits():
    assert parse_id("42") == 42
    assert parse_id(7) == 7


def test_page_info():
    assert response.page_info(2, 10, 25) == {
        "page": 2, "limit": 10, "total": 25, "totalPages": 3, "hasMore": True,
    }
    assert response.page_info(1, 10, 0)["hasMore"] is False


def test_paginated_envelope():
    body = response.paginated([1, 2], 1, 2, 5)
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 5, "pages": 3}
    assert body["success"] is True


def test_camelize_nested():
    assert response.camelize({"top_hymns": [{"view_count": 1}], "total": 2}) == {
        "topHymns": [{"viewCount": 1}], "total": 2,
    }


def test_success_omits_missing_data():
    assert response.success(message="Done") == {"success": True, "message": "Done"}


def test_check_ownership():
    owner = User(id=1, role="user", is_superuser=False)
    admin = User(id=2, role="admin", is_superuser=False)

    check_ownership(1, owner, "polls")
    check_ownership(1, admin, "polls", allow_admin=True)
    with pytest.raises(HTTPException) as exc:
        check_ownership(1, admin, "polls")
    assert exc.value.status_code == 403
    assert exc.value.detail == "You can only modify your own polls"


def test_handle_service_error_maps_statuses():
    assert handle_service_error(None, NotFoundError("Media not found"), "x").status_code == 404
    assert handle_service_error(None, ConflictError("dup"), "x").detail == "dup"

    hidden = handle_service_error(None, RuntimeError("db exploded"), "Failed to do it")
    assert hidden.status_code == 500
    assert hidden.detail == "Failed to do it"


@pytest.mark.parametrize(
    "password, valid",
    [("short1", False), ("longpassword", False), ("12345678", False), ("Password123", True)],
)
def test_password_strength(password, valid):
    assert validate_password_strength(password)[0] is valid


def test_escape_like():
    assert escape_like("100%_off") == "100\\%\\_off"
    assert escape_like("a\\b") == "a\\\\b"
    assert escape_like("grace") == "grace"
