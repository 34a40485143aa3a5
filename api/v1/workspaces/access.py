"""Workspace access resolution.

A workspace owner always resolves to OWNER. Personal workspaces have no
membership rows, so for them anyone else is DENIED without touching the
membership table. Team workspaces map the caller's membership role.
"""

import enum
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from core.exceptions import Forbidden, NotFound, ValidationFailed
from models.membership import MembershipRole, WorkspaceMember
from models.user import User
from models.workspace import Workspace


class AccessLevel(str, enum.Enum):
    NOT_FOUND = "not_found"
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    DENIED = "denied"


VIEWERS = frozenset({AccessLevel.OWNER, AccessLevel.ADMIN, AccessLevel.MEMBER})
MANAGERS = frozenset({AccessLevel.OWNER, AccessLevel.ADMIN})
OWNERS = frozenset({AccessLevel.OWNER})

_ROLE_LEVELS = {
    MembershipRole.owner: AccessLevel.OWNER,
    MembershipRole.admin: AccessLevel.ADMIN,
    MembershipRole.member: AccessLevel.MEMBER,
}


def _resolve(db: Session, user_id: int, workspace_id: int) -> Tuple[Optional[Workspace], AccessLevel]:
    workspace = db.query(Workspace).filter_by(id=workspace_id).first()
    if workspace is None:
        return None, AccessLevel.NOT_FOUND
    if workspace.owner_id == user_id:
        return workspace, AccessLevel.OWNER
    if not workspace.is_team:
        return workspace, AccessLevel.DENIED

    membership = db.query(WorkspaceMember).filter_by(workspace_id=workspace_id, user_id=user_id).first()
    if membership is None:
        return workspace, AccessLevel.DENIED
    return workspace, _ROLE_LEVELS[membership.role]


def resolve_access(db: Session, user_id: int, workspace_id: int) -> AccessLevel:
    return _resolve(db, user_id, workspace_id)[1]


def require_access(
    db: Session,
    user: User,
    workspace_id: int,
    allowed: Iterable[AccessLevel] = VIEWERS,
    message: str = "Access denied",
) -> Tuple[Workspace, AccessLevel]:
    workspace, level = _resolve(db, user.id, workspace_id)
    if level == AccessLevel.NOT_FOUND:
        raise NotFound("Workspace not found")
    if level not in allowed:
        raise Forbidden(message)
    return workspace, level


def validate_assignee(db: Session, workspace: Workspace, user_id: Optional[int]) -> None:
    """Assignees must be able to see the workspace they are assigned work in."""
    if user_id is None or user_id == workspace.owner_id:
        return
    if workspace.is_team:
        exists = db.query(WorkspaceMember.id).filter_by(workspace_id=workspace.id, user_id=user_id).first()
        if exists:
            return
    raise ValidationFailed("Assignee must be a member of this workspace")
