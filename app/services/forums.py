"""
Discussion forums and their posts.
posts_count and participants_count are maintained with atomic updates.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..crud.base import CRUDBase
from ..models.forum import Forum, ForumPost
from ..models.user import User
from ..utils.controller import is_admin
from ..utils.errors import NotFoundError, PermissionDeniedError
from ..utils.query import PaginatedResult, build_pagination, build_sort, execute_paginated_query

logger = logging.getLogger(__name__)

POST_SORT_FIELDS = {
    "likesCount": "likes_count",
    "commentsCount": "comments_count",
    "createdAt": "created_at",
}

forums = CRUDBase(Forum)
forum_posts = CRUDBase(ForumPost)


def get_forum(db: Session, forum_id: int) -> Forum:
    forum = db.query(Forum).filter(Forum.id == forum_id, Forum.is_active.is_(True)).first()
    if forum is None:
        raise NotFoundError("Forum not found")
    return forum


def create_forum(db: Session, admin: User, title: str, description: str) -> Forum:
    forum = forums.create(db, obj_in={"title": title, "description": description, "created_by": admin.id})
    logger.info(f"✅ Forum {forum.id} '{forum.title}' created by admin {admin.id}")
    return forum


def list_forums(db: Session, page: int = 1, limit: int = 20) -> PaginatedResult:
    query = db.query(Forum).filter(Forum.is_active.is_(True))
    skip, limit = build_pagination(page, limit)
    return execute_paginated_query(query, skip=skip, limit=limit, order_by=[Forum.created_at.desc(), Forum.id.desc()])


def create_post(db: Session, user: User, forum_id: int, data: Dict[str, Any]) -> ForumPost:
    forum = get_forum(db, forum_id)
    first_post = (
        db.query(ForumPost.id)
        .filter(ForumPost.forum_id == forum.id, ForumPost.user_id == user.id)
        .first()
    ) is None

    post = forum_posts.create(db, obj_in=data, commit=False, forum_id=forum.id, user_id=user.id)
    forums.increment(db, forum.id, "posts_count")
    if first_post:
        forums.increment(db, forum.id, "participants_count")
    db.commit()
    db.refresh(post)

    logger.info(f"💬 User {user.id} posted {post.id} in forum {forum.id}")
    return post


def list_posts(
    db: Session,
    forum_id: int,
    page: int = 1,
    limit: int = 20,
    sort_by: Optional[str] = None,
    sort_order: str = "desc",
) -> PaginatedResult:
    get_forum(db, forum_id)
    query = db.query(ForumPost).filter(ForumPost.forum_id == forum_id)
    skip, limit = build_pagination(page, limit)
    order = build_sort(ForumPost, sort_by, sort_order, allowed=POST_SORT_FIELDS, default="created_at")
    return execute_paginated_query(query, skip=skip, limit=limit, order_by=[order, ForumPost.id.desc()])


def _get_post(db: Session, post_id: int) -> ForumPost:
    post = db.get(ForumPost, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def update_post(db: Session, user: User, post_id: int, changes: Dict[str, Any]) -> ForumPost:
    """Only the author may edit; admins included"""
    post = _get_post(db, post_id)
    if post.user_id != user.id:
        raise PermissionDeniedError("You can only edit your own posts")
    return forum_posts.update(db, db_obj=post, obj_in=changes)


def delete_post(db: Session, user: User, post_id: int) -> None:
    post = _get_post(db, post_id)
    if post.user_id != user.id and not is_admin(user):
        raise PermissionDeniedError("You can only delete your own posts")

    forum_id = post.forum_id
    forum_posts.remove(db, db_obj=post, commit=False)
    forums.increment(db, forum_id, "posts_count", -1)
    db.commit()
    logger.info(f"🗑️ Post {post_id} deleted by user {user.id}")
