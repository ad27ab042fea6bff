"""
Generic list/get/create/update/delete for one SQLAlchemy model.

Domain routers configure a BaseController and plug behaviour in through a
ResourceHooks subclass rather than rewriting the CRUD flow.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Type

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..crud.base import CRUDBase
from ..utils import response
from ..utils.controller import check_ownership, get_pagination, handle_service_error, parse_id
from ..utils.query import (
    build_not_deleted_filter,
    build_pagination,
    build_sort,
    build_text_search,
    combine_filters,
    execute_paginated_query,
)

logger = logging.getLogger(__name__)


class ResourceHooks:
    """Override any of these; defaults do nothing"""

    def before_save(self, db: Session, data: Dict[str, Any], user) -> Dict[str, Any]:
        return data

    def after_save(self, db: Session, obj, user) -> None:
        pass

    def before_update(self, db: Session, obj, data: Dict[str, Any], user) -> Dict[str, Any]:
        return data

    def after_update(self, db: Session, obj, user) -> None:
        pass

    def before_delete(self, db: Session, obj, user) -> None:
        pass

    def after_delete(self, db: Session, obj, user) -> None:
        pass


class BaseController:
    def __init__(
        self,
        model,
        out_schema: Type[BaseModel],
        hooks: Optional[ResourceHooks] = None,
        owner_field: Optional[str] = "user_id",
        soft_delete: bool = False,
        search_fields: Sequence[str] = (),
        sort_fields: Optional[Dict[str, str]] = None,
        default_sort: str = "created_at",
        base_filters: Sequence[Any] = (),
        resource_name: str = "Resource",
    ):
        self.model = model
        self.crud = CRUDBase(model)
        self.out_schema = out_schema
        self.hooks = hooks or ResourceHooks()
        self.owner_field = owner_field
        self.soft_delete = soft_delete
        self.search_fields = search_fields
        self.sort_fields = sort_fields or {}
        self.default_sort = default_sort
        self.base_filters = base_filters
        self.resource_name = resource_name

    # ==================== Helpers ====================

    def serialize(self, obj) -> BaseModel:
        return self.out_schema.model_validate(obj)

    def _visible(self):
        filters = list(self.base_filters)
        if self.soft_delete:
            filters.append(build_not_deleted_filter(self.model))
        return combine_filters(*filters)

    def _fetch(self, db: Session, raw_id: Any):
        obj_id = parse_id(raw_id, f"{self.resource_name.lower()} ID")
        query = db.query(self.model).filter(self.model.id == obj_id)
        visible = self._visible()
        if visible is not None:
            query = query.filter(visible)
        obj = query.first()
        if obj is None:
            response.not_found(f"{self.resource_name} not found")
        return obj

    def _check_owner(self, obj, user) -> None:
        if self.owner_field:
            check_ownership(getattr(obj, self.owner_field), user, self.resource_name.lower(), allow_admin=True)

    # ==================== Operations ====================

    def get_list(
        self,
        db: Session,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
        filters: Sequence[Any] = (),
        message: str = "Data retrieved successfully",
    ) -> dict:
        try:
            page, limit = get_pagination(page, limit)
            where = combine_filters(
                self._visible(),
                build_text_search(self.model, search, self.search_fields) if self.search_fields else None,
                *filters,
            )
            query = db.query(self.model)
            if where is not None:
                query = query.filter(where)

            skip, limit = build_pagination(page, limit)
            order = build_sort(self.model, sort_by, sort_order, allowed=self.sort_fields, default=self.default_sort)
            result = execute_paginated_query(query, skip=skip, limit=limit, order_by=[order, self.model.id.desc()])
            return response.paginated(
                [self.serialize(o) for o in result.data], result.page, result.limit, result.total, message
            )
        except HTTPException:
            raise
        except Exception as e:
            raise handle_service_error(db, e, f"Failed to retrieve {self.resource_name.lower()} list")

    def get_by_id(self, db: Session, raw_id: Any) -> dict:
        try:
            obj = self._fetch(db, raw_id)
            return response.success(self.serialize(obj), f"{self.resource_name} retrieved successfully")
        except HTTPException:
            raise
        except Exception as e:
            raise handle_service_error(db, e, f"Failed to retrieve {self.resource_name.lower()}", id=raw_id)

    def create(self, db: Session, payload: BaseModel, user, **extra: Any) -> dict:
        try:
            data = {**payload.model_dump(), **extra}
            if self.owner_field and user is not None:
                data.setdefault(self.owner_field, user.id)
            data = self.hooks.before_save(db, data, user)
            obj = self.crud.create(db, obj_in=data)
        except HTTPException:
            raise
        except Exception as e:
            raise handle_service_error(db, e, f"Failed to create {self.resource_name.lower()}")

        # Already committed; a failing hook is logged, not rolled back
        try:
            self.hooks.after_save(db, obj, user)
        except Exception as e:
            logger.error(f"❌ after_save hook failed for {self.resource_name} {obj.id}: {e}", exc_info=True)

        return response.created(self.serialize(obj), f"{self.resource_name} created successfully")

    def update(self, db: Session, raw_id: Any, payload: BaseModel, user) -> dict:
        try:
            obj = self._fetch(db, raw_id)
            self._check_owner(obj, user)
            data = payload.model_dump(exclude_unset=True)
            data = self.hooks.before_update(db, obj, data, user)
            obj = self.crud.update(db, db_obj=obj, obj_in=data)
            self.hooks.after_update(db, obj, user)
            return response.success(self.serialize(obj), f"{self.resource_name} updated successfully")
        except HTTPException:
            raise
        except Exception as e:
            raise handle_service_error(db, e, f"Failed to update {self.resource_name.lower()}", id=raw_id)

    def delete(self, db: Session, raw_id: Any, user) -> dict:
        try:
            obj = self._fetch(db, raw_id)
            self._check_owner(obj, user)
            self.hooks.before_delete(db, obj, user)

            if self.soft_delete:
                obj.is_deleted = True
                obj.deleted_at = datetime.utcnow()
                db.commit()
            else:
                self.crud.remove(db, db_obj=obj)

            self.hooks.after_delete(db, obj, user)
            logger.info(f"🗑️ {self.resource_name} {obj.id} deleted by user {user.id}")
            return response.success(message=f"{self.resource_name} deleted successfully")
        except HTTPException:
            raise
        except Exception as e:
            raise handle_service_error(db, e, f"Failed to delete {self.resource_name.lower()}", id=raw_id)
