from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from api.v1.tasks.schemas import TaskOut
from core.db.dependencies import get_ai, get_db, get_email, get_settings
from core.serialization import envelope
from models.user import User

from .access import VIEWERS, require_access
from .schemas import MemberAdd, MemberOut, MemberRoleUpdate, WorkspaceCreate, WorkspaceGenerate, WorkspaceUpdate
from .services import (
    add_member,
    archive_workspace,
    create_workspace,
    generate_workspace,
    list_members,
    list_workspaces,
    remove_member,
    update_member_role,
    update_workspace,
    workspace_out,
)

router = APIRouter(prefix="/workspaces", tags=["Workspaces"])


@router.get("")
def get_workspaces(user: User = Depends(get_current_user), db: Session = Depends(get_db),
                   settings=Depends(get_settings)):
    workspaces = list_workspaces(db, user)
    return envelope(settings, count=len(workspaces), workspaces=workspaces)


@router.post("", status_code=status.HTTP_201_CREATED)
def post_workspace(data: WorkspaceCreate, user: User = Depends(get_current_user),
                   db: Session = Depends(get_db), settings=Depends(get_settings)):
    workspace = create_workspace(db, user, data)
    return envelope(settings, message="Workspace created", workspace=workspace_out(workspace))


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def post_generate(data: WorkspaceGenerate, user: User = Depends(get_current_user),
                  db: Session = Depends(get_db), settings=Depends(get_settings), ai=Depends(get_ai)):
    workspace, tasks = generate_workspace(db, user, ai, data.prompt, data.type)
    return envelope(
        settings,
        message="Workspace generated",
        workspace=workspace_out(workspace),
        tasks=[TaskOut.model_validate(task) for task in tasks],
    )


@router.get("/{workspace_id}")
def get_workspace(workspace_id: int, user: User = Depends(get_current_user),
                  db: Session = Depends(get_db), settings=Depends(get_settings)):
    workspace, level = require_access(db, user, workspace_id, VIEWERS)
    return envelope(settings, workspace=workspace_out(workspace, level))


@router.put("/{workspace_id}")
def put_workspace(workspace_id: int, data: WorkspaceUpdate, user: User = Depends(get_current_user),
                  db: Session = Depends(get_db), settings=Depends(get_settings)):
    workspace = update_workspace(db, user, workspace_id, data)
    return envelope(settings, message="Workspace updated", workspace=workspace_out(workspace))


@router.delete("/{workspace_id}")
def delete_workspace(workspace_id: int, user: User = Depends(get_current_user),
                     db: Session = Depends(get_db), settings=Depends(get_settings)):
    archive_workspace(db, user, workspace_id)
    return envelope(settings, message="Workspace deleted")


### MEMBERS ###

@router.get("/{workspace_id}/members")
def get_members(workspace_id: int, user: User = Depends(get_current_user),
                db: Session = Depends(get_db), settings=Depends(get_settings)):
    members = [MemberOut.model_validate(m) for m in list_members(db, user, workspace_id)]
    return envelope(settings, count=len(members), members=members)


@router.post("/{workspace_id}/members", status_code=status.HTTP_201_CREATED)
def post_member(workspace_id: int, data: MemberAdd, user: User = Depends(get_current_user),
                db: Session = Depends(get_db), settings=Depends(get_settings), email=Depends(get_email)):
    membership = add_member(db, user, workspace_id, data, email)
    return envelope(settings, message="Member added", member=MemberOut.model_validate(membership))


@router.put("/{workspace_id}/members/{member_id}")
def put_member(workspace_id: int, member_id: int, data: MemberRoleUpdate,
               user: User = Depends(get_current_user), db: Session = Depends(get_db),
               settings=Depends(get_settings)):
    membership = update_member_role(db, user, workspace_id, member_id, data.role)
    return envelope(settings, message="Member role updated", member=MemberOut.model_validate(membership))


@router.delete("/{workspace_id}/members/{member_id}")
def delete_member(workspace_id: int, member_id: int, user: User = Depends(get_current_user),
                  db: Session = Depends(get_db), settings=Depends(get_settings)):
    remove_member(db, user, workspace_id, member_id)
    return envelope(settings, message="Member removed")
