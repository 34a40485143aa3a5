import logging
from typing import List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from api.v1.tasks.services import task_values
from core.db.session import commit
from core.exceptions import Conflict, Forbidden, InvalidOperation, NotFound
from models.membership import MembershipRole, WorkspaceMember
from models.task import Task
from models.user import User
from models.workspace import Workspace, WorkspaceType

from .access import MANAGERS, OWNERS, VIEWERS, AccessLevel, require_access
from .schemas import MemberAdd, WorkspaceCreate, WorkspaceOut, WorkspaceUpdate

logger = logging.getLogger(__name__)

LAST_OWNER_MESSAGE = "Cannot remove the last owner"
TEMPLATE_FIELDS = (
    "description", "default_view", "theme", "background_type",
    "background_value", "primary_color", "secondary_color",
)


### WORKSPACES ###

def workspace_out(workspace: Workspace, level: Optional[AccessLevel] = None) -> WorkspaceOut:
    out = WorkspaceOut.model_validate(workspace)
    if level is not None:
        out.role = level.value
    return out


def list_workspaces(db: Session, user: User) -> List[WorkspaceOut]:
    memberships = {
        m.workspace_id: m.role
        for m in db.query(WorkspaceMember).filter_by(user_id=user.id).all()
    }
    workspaces = (
        db.query(Workspace)
        .filter(
            or_(Workspace.owner_id == user.id, Workspace.id.in_(list(memberships))),
            Workspace.is_archived.is_(False),
        )
        .order_by(Workspace.is_default.desc(), Workspace.created_at, Workspace.id)
        .all()
    )
    result = []
    for workspace in workspaces:
        if workspace.owner_id == user.id:
            level = AccessLevel.OWNER
        else:
            level = AccessLevel(memberships[workspace.id].value)
        result.append(workspace_out(workspace, level))
    return result


def create_workspace(db: Session, user: User, data: WorkspaceCreate) -> Workspace:
    workspace = Workspace(owner_id=user.id, **data.model_dump(exclude_none=True))
    db.add(workspace)
    if workspace.is_team:
        workspace.members.append(WorkspaceMember(user_id=user.id, role=MembershipRole.owner))
    commit(db, "creating workspace")
    db.refresh(workspace)
    logger.info("User %s created %s workspace %s", user.id, workspace.type.value, workspace.id)
    return workspace


def update_workspace(db: Session, user: User, workspace_id: int, data: WorkspaceUpdate) -> Workspace:
    workspace, _ = require_access(
        db, user, workspace_id, MANAGERS, "Only owners and admins can update the workspace"
    )
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(workspace, field, value)
    commit(db, "updating workspace")
    db.refresh(workspace)
    return workspace


def archive_workspace(db: Session, user: User, workspace_id: int) -> None:
    workspace, _ = require_access(db, user, workspace_id, OWNERS, "Only owners can delete the workspace")
    if workspace.is_default:
        raise InvalidOperation("Cannot delete your default workspace")
    workspace.is_archived = True
    commit(db, "archiving workspace")
    logger.info("User %s archived workspace %s", user.id, workspace_id)


def generate_workspace(db: Session, user: User, ai, prompt: str, workspace_type: WorkspaceType):
    """Create a workspace (and its sample tasks) from an AI template."""
    template = ai.workspace_template(prompt)

    workspace = Workspace(
        owner_id=user.id,
        type=workspace_type,
        name=str(template.get("name") or "New Workspace")[:255],
        settings={"category": template.get("category"), "board_configs": template.get("board_configs") or []},
    )
    for field in TEMPLATE_FIELDS:
        if isinstance(template.get(field), str):
            setattr(workspace, field, template[field])
    db.add(workspace)
    if workspace_type == WorkspaceType.team:
        workspace.members.append(WorkspaceMember(user_id=user.id, role=MembershipRole.owner))
    db.flush()

    samples = template.get("sample_tasks")
    tasks = [
        Task(workspace_id=workspace.id, created_by=user.id, **task_values(sample))
        for sample in (samples if isinstance(samples, list) else [])
        if isinstance(sample, dict) and sample.get("title")
    ]
    db.add_all(tasks)
    commit(db, "creating generated workspace")
    db.refresh(workspace)
    return workspace, tasks


### MEMBERS ###

def _owner_entry(workspace: Workspace) -> dict:
    owner = workspace.owner
    return {
        "id": None,
        "workspace_id": workspace.id,
        "user_id": workspace.owner_id,
        "role": MembershipRole.owner,
        "joined_at": workspace.created_at,
        "invited_by_id": None,
        "user": owner,
    }


def list_members(db: Session, user: User, workspace_id: int) -> list:
    workspace, _ = require_access(db, user, workspace_id, VIEWERS)
    if not workspace.is_team:
        return [_owner_entry(workspace)]

    rows = (
        db.query(WorkspaceMember)
        .filter_by(workspace_id=workspace_id)
        .order_by(WorkspaceMember.joined_at, WorkspaceMember.id)
        .all()
    )
    members: list = list(rows)
    if all(row.user_id != workspace.owner_id for row in rows):
        members.insert(0, _owner_entry(workspace))
    return members


def _get_membership(db: Session, workspace_id: int, member_id: int) -> WorkspaceMember:
    membership = db.query(WorkspaceMember).filter_by(id=member_id, workspace_id=workspace_id).first()
    if not membership:
        raise NotFound("Member not found")
    return membership


def _has_another_owner(workspace_id: int):
    # Derived table so MySQL accepts a subquery on the table being modified
    owners = (
        select(func.count(WorkspaceMember.id).label("owners"))
        .where(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.role == MembershipRole.owner,
        )
        .subquery()
    )
    return select(owners.c.owners).scalar_subquery() > 1


def add_member(db: Session, user: User, workspace_id: int, data: MemberAdd, email_sender=None) -> WorkspaceMember:
    workspace, _ = require_access(db, user, workspace_id, MANAGERS, "Only owners and admins can add members")
    if not workspace.is_team:
        raise InvalidOperation("Members can only be added to team workspaces")

    target = db.query(User).filter(func.lower(User.email) == data.user_email.lower()).first()
    if not target:
        raise NotFound("User not found")

    already = db.query(WorkspaceMember.id).filter_by(workspace_id=workspace_id, user_id=target.id).first()
    if already or target.id == workspace.owner_id:
        raise Conflict("User is already a member of this workspace")

    membership = WorkspaceMember(
        workspace_id=workspace_id,
        user_id=target.id,
        role=data.role,
        invited_by_id=user.id,
    )
    db.add(membership)
    commit(db, "adding member", conflict_message="User is already a member of this workspace")
    db.refresh(membership)
    logger.info("User %s added user %s to workspace %s as %s", user.id, target.id, workspace_id, data.role.value)

    if email_sender is not None:
        result = email_sender.send_workspace_invite(target.email, workspace.name, user.name)
        if not result.sent:
            logger.info("Invite email to user %s not sent: %s", target.id, result.error)
    return membership


def update_member_role(db: Session, user: User, workspace_id: int, member_id: int,
                       role: MembershipRole) -> WorkspaceMember:
    require_access(db, user, workspace_id, MANAGERS, "Only owners and admins can change member roles")
    membership = _get_membership(db, workspace_id, member_id)
    if membership.role == role:
        return membership

    stmt = update(WorkspaceMember).where(WorkspaceMember.id == membership.id)
    if membership.role == MembershipRole.owner:
        stmt = stmt.where(_has_another_owner(workspace_id))
    result = db.execute(stmt.values(role=role).execution_options(synchronize_session=False))
    if result.rowcount == 0:
        db.rollback()
        raise InvalidOperation(LAST_OWNER_MESSAGE)

    commit(db, "changing member role")
    db.refresh(membership)
    logger.info("User %s set member %s of workspace %s to %s", user.id, member_id, workspace_id, role.value)
    return membership


def remove_member(db: Session, user: User, workspace_id: int, member_id: int) -> None:
    _, level = require_access(db, user, workspace_id, VIEWERS, "Only owners and admins can remove members")
    membership = _get_membership(db, workspace_id, member_id)
    if membership.user_id != user.id and level not in MANAGERS:
        raise Forbidden("Only owners and admins can remove members")

    stmt = delete(WorkspaceMember).where(WorkspaceMember.id == membership.id)
    if membership.role == MembershipRole.owner:
        stmt = stmt.where(_has_another_owner(workspace_id))
    result = db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount == 0:
        db.rollback()
        raise InvalidOperation(LAST_OWNER_MESSAGE)

    db.expunge(membership)
    commit(db, "removing member")
    logger.info("User %s removed member %s from workspace %s", user.id, member_id, workspace_id)
