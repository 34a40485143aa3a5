"""Workspace-scoped CRUD shared by every resource collection.

Every operation first resolves the caller's access to the workspace named in
the path. Viewers may read and write; deleting needs an owner or admin.
Subclasses adjust the written values in ``prepare``.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple, Type

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Query as SAQuery, Session

from api.v1.auth.utils import get_current_user
from api.v1.workspaces.access import MANAGERS, VIEWERS, require_access
from core.db.dependencies import get_db, get_settings
from core.db.session import commit
from core.exceptions import NotFound
from core.serialization import envelope
from models.user import User
from models.workspace import Workspace

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class ResourceService:
    label = "Item"
    # Fields an update may explicitly set to null; other nulls are ignored
    clearable: Tuple[str, ...] = ("notes",)
    # Reported when a write hits one of the model's unique constraints
    conflict_message: Optional[str] = None

    def __init__(self, model):
        self.model = model

    def ordering(self):
        return [self.model.created_at.desc(), self.model.id.desc()]

    def filter(self, query: SAQuery, filters: Dict[str, Any]) -> SAQuery:
        return query

    def prepare(self, db: Session, workspace: Workspace, user: User,
                values: Dict[str, Any], item=None) -> Dict[str, Any]:
        """Hook to validate and derive fields before a write."""
        return values

    def after_write(self, db: Session, workspace: Workspace, user: User, item,
                    previous: Optional[Dict[str, Any]], **context):
        pass

    def _get(self, db: Session, workspace_id: int, item_id: int):
        item = db.query(self.model).filter_by(id=item_id, workspace_id=workspace_id).first()
        if not item:
            raise NotFound(f"{self.label} not found")
        return item

    def list(self, db: Session, user: User, workspace_id: int, filters: Optional[Dict[str, Any]] = None,
             page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Tuple[List[Any], int]:
        require_access(db, user, workspace_id, VIEWERS)
        query = self.filter(db.query(self.model).filter_by(workspace_id=workspace_id), filters or {})
        total = query.count()
        items = query.order_by(*self.ordering()).offset((page - 1) * limit).limit(limit).all()
        return items, total

    def get(self, db: Session, user: User, workspace_id: int, item_id: int):
        require_access(db, user, workspace_id, VIEWERS)
        return self._get(db, workspace_id, item_id)

    def create(self, db: Session, user: User, workspace_id: int, values: Dict[str, Any], **context):
        workspace, _ = require_access(db, user, workspace_id, VIEWERS)
        values = self.prepare(db, workspace, user, values)
        item = self.model(workspace_id=workspace_id, created_by=user.id, **values)
        db.add(item)
        commit(db, f"creating {self.label.lower()}", self.conflict_message)
        db.refresh(item)
        logger.info("User %s created %s %s in workspace %s", user.id, self.label.lower(), item.id, workspace_id)
        self.after_write(db, workspace, user, item, None, **context)
        return item

    def update(self, db: Session, user: User, workspace_id: int, item_id: int, values: Dict[str, Any],
               **context):
        workspace, _ = require_access(db, user, workspace_id, VIEWERS)
        item = self._get(db, workspace_id, item_id)
        values = {k: v for k, v in values.items() if v is not None or k in self.clearable}
        previous = {field: getattr(item, field) for field in values}
        values = self.prepare(db, workspace, user, values, item)
        for field, value in values.items():
            setattr(item, field, value)
        commit(db, f"updating {self.label.lower()}", self.conflict_message)
        db.refresh(item)
        self.after_write(db, workspace, user, item, previous, **context)
        return item

    def delete(self, db: Session, user: User, workspace_id: int, item_id: int) -> None:
        require_access(db, user, workspace_id, MANAGERS, f"Only owners and admins can delete this {self.label.lower()}")
        item = self._get(db, workspace_id, item_id)
        db.delete(item)
        commit(db, f"deleting {self.label.lower()}")
        logger.info("User %s deleted %s %s in workspace %s", user.id, self.label.lower(), item_id, workspace_id)


def crud_router(
    service: ResourceService,
    path: str,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    out_schema: Type[BaseModel],
    singular: str,
    plural: str,
    tags: Optional[List[str]] = None,
    router: Optional[APIRouter] = None,
    skip: Tuple[str, ...] = (),
) -> APIRouter:
    """Mount list/create/get/update/delete for ``service`` under
    ``/workspaces/{workspace_id}/<path>``. Operations named in ``skip`` are
    left for the caller to define."""
    router = router or APIRouter(prefix="/workspaces/{workspace_id}")
    tags = tags or [plural.title()]
    label = service.label

    def list_items(
        workspace_id: int,
        page: int = Query(1, ge=1),
        limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        settings=Depends(get_settings),
    ):
        items, total = service.list(db, user, workspace_id, page=page, limit=limit)
        return list_envelope(settings, plural, [out_schema.model_validate(item) for item in items],
                             total, page, limit)

    def create_item(
        workspace_id: int,
        data: create_schema,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        settings=Depends(get_settings),
    ):
        item = service.create(db, user, workspace_id, data.model_dump())
        return envelope(settings, message=f"{label} created", **{singular: out_schema.model_validate(item)})

    def get_item(
        workspace_id: int,
        item_id: int,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        settings=Depends(get_settings),
    ):
        item = service.get(db, user, workspace_id, item_id)
        return envelope(settings, **{singular: out_schema.model_validate(item)})

    def update_item(
        workspace_id: int,
        item_id: int,
        data: update_schema,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        settings=Depends(get_settings),
    ):
        item = service.update(db, user, workspace_id, item_id, data.model_dump(exclude_unset=True))
        return envelope(settings, message=f"{label} updated", **{singular: out_schema.model_validate(item)})

    def delete_item(
        workspace_id: int,
        item_id: int,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        settings=Depends(get_settings),
    ):
        service.delete(db, user, workspace_id, item_id)
        return envelope(settings, message=f"{label} deleted")

    routes = (
        ("list", f"/{path}", list_items, "GET", status.HTTP_200_OK),
        ("create", f"/{path}", create_item, "POST", status.HTTP_201_CREATED),
        ("get", f"/{path}/{{item_id}}", get_item, "GET", status.HTTP_200_OK),
        ("update", f"/{path}/{{item_id}}", update_item, "PUT", status.HTTP_200_OK),
        ("delete", f"/{path}/{{item_id}}", delete_item, "DELETE", status.HTTP_200_OK),
    )
    for name, route_path, endpoint, method, status_code in routes:
        if name in skip:
            continue
        router.add_api_route(
            route_path,
            endpoint,
            methods=[method],
            status_code=status_code,
            name=f"{name}_{singular}",
            tags=tags,
        )
    return router


def list_envelope(settings, key: str, items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    return envelope(
        settings,
        count=len(items),
        total=total,
        page=page,
        pages=math.ceil(total / limit) if total else 0,
        **{key: items},
    )
