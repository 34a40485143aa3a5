from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from api.v1.resources.crud import crud_router
from core.db.dependencies import get_ai, get_db, get_settings
from core.serialization import envelope
from models.user import User

from .schemas import (
    ChecklistGenerate,
    InstanceCreate,
    InstanceFromTemplate,
    InstanceOut,
    InstanceUpdate,
    TemplateCreate,
    TemplateOut,
    TemplateUpdate,
)
from .services import instances, templates

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["Compliance"])


@router.post("/compliance/templates/generate")
def generate_checklist(
    workspace_id: int,
    data: ChecklistGenerate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
    ai=Depends(get_ai),
):
    items = templates.generate_items(db, user, workspace_id, ai, data.prompt, data.industry, data.category)
    return envelope(settings, message="Checklist generated successfully", items=items)


@router.post("/compliance/instances/from-template/{template_id}", status_code=status.HTTP_201_CREATED)
def create_from_template(
    workspace_id: int,
    template_id: int,
    data: InstanceFromTemplate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
):
    instance = instances.from_template(db, user, workspace_id, template_id, data.model_dump())
    return envelope(settings, message="Checklist created", instance=InstanceOut.model_validate(instance))


crud_router(templates, "compliance/templates", TemplateCreate, TemplateUpdate, TemplateOut,
            "template", "templates", tags=["Compliance"], router=router)
crud_router(instances, "compliance/instances", InstanceCreate, InstanceUpdate, InstanceOut,
            "instance", "instances", tags=["Compliance"], router=router)
