# app/api/v1/polls.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
import logging

from ...database import get_db
from ...models.poll import Poll
from ...models.user import User
from ...schemas.poll import PollCreate, PollUpdate, PollVoteRequest
from ...services import polls as poll_service
from ...utils import response
from ...utils.controller import check_ownership, get_pagination, handle_service_error, parse_id
from ...utils.query import build_pagination, execute_paginated_query
from ..deps import get_current_user, get_current_user_optional

logger = logging.getLogger(__name__)

router = APIRouter()


def _poll_out(poll: Poll, user: Optional[User]) -> dict:
    return response.camelize(jsonable_encoder(poll_service.serialize_poll(poll, user.id if user else None)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_poll(
    payload: PollCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        closes_at = poll_service.normalize_closes_at(payload.closes_at)
        poll = Poll(
            question=payload.question,
            description=payload.description,
            options=payload.options,
            multi_select=payload.multi_select,
            closes_at=closes_at,
            author_id=current_user.id,
        )
        db.add(poll)
        db.commit()
        db.refresh(poll)

        logger.info(f"✅ Poll {poll.id} created by user {current_user.id}")
        return response.created(_poll_out(poll, current_user), "Poll created successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to create poll")


@router.get("")
def list_polls(
    page: int = 1,
    limit: int = 20,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    try:
        page, limit = get_pagination(page, limit)
        skip, limit = build_pagination(page, limit)
        result = execute_paginated_query(db.query(Poll).filter(Poll.is_active.is_(True)), skip=skip, limit=limit)
        return response.success(
            {
                "polls": [_poll_out(p, current_user) for p in result.data],
                "pagination": response.page_info(result.page, result.limit, result.total),
            },
            "Polls retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve polls")


@router.get("/{poll_id}")
def get_poll(
    poll_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    try:
        poll = poll_service.get_poll(db, parse_id(poll_id, "poll ID"))
        return response.success(_poll_out(poll, current_user), "Poll retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve poll", poll_id=poll_id)


@router.post("/{poll_id}/vote")
def vote_on_poll(
    poll_id: str,
    payload: PollVoteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        poll = poll_service.get_poll(db, parse_id(poll_id, "poll ID"))
        poll_service.vote(db, poll, current_user.id, payload.option_indexes)
        return response.success(_poll_out(poll, current_user), "Vote recorded successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to vote", poll_id=poll_id, user_id=current_user.id)


@router.put("/{poll_id}")
def update_poll(
    poll_id: str,
    payload: PollUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        poll = poll_service.get_poll(db, parse_id(poll_id, "poll ID"))
        check_ownership(poll.author_id, current_user, "polls", allow_admin=True)

        changes = payload.model_dump(exclude_unset=True)
        if "closes_at" in changes:
            changes["closes_at"] = poll_service.normalize_closes_at(changes["closes_at"])
        for field, value in changes.items():
            setattr(poll, field, value)
        db.commit()
        db.refresh(poll)

        return response.success(_poll_out(poll, current_user), "Poll updated successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to update poll", poll_id=poll_id)


@router.delete("/{poll_id}")
def delete_poll(
    poll_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        poll = poll_service.get_poll(db, parse_id(poll_id, "poll ID"))
        check_ownership(poll.author_id, current_user, "polls", allow_admin=True)
        db.delete(poll)
        db.commit()

        logger.info(f"🗑️ Poll {poll.id} deleted by user {current_user.id}")
        return response.success(message="Poll deleted successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to delete poll", poll_id=poll_id)
