import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.db.session import commit
from core.exceptions import InvalidOperation, NotFound
from models.subscription import Subscription
from models.task import Task
from models.user import User, UserRole

logger = logging.getLogger(__name__)


def list_users(db: Session, search: Optional[str], status: Optional[str],
               page: int, limit: int) -> Tuple[List[User], int]:
    query = db.query(User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if status == "active":
        query = query.filter(User.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(User.is_active.is_(False))
    elif status == "admin":
        query = query.filter(User.role.in_([UserRole.admin.value, UserRole.superadmin.value]))
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return users, total


def stats(db: Session) -> dict:
    month_start = datetime.utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return {
        "total_users": db.query(func.count(User.id)).scalar() or 0,
        "active_subscriptions": db.query(func.count(Subscription.id)).filter(Subscription.status == "active").scalar() or 0,
        "total_tasks": db.query(func.count(Task.id)).scalar() or 0,
        "new_users_this_month": db.query(func.count(User.id)).filter(User.created_at >= month_start).scalar() or 0,
    }


def _user(db: Session, user_id: int) -> User:
    user = db.query(User).filter_by(id=user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def set_status(db: Session, actor: User, user_id: int, is_active: Optional[bool]) -> User:
    user = _user(db, user_id)
    target = (not user.is_active) if is_active is None else is_active
    if user.id == actor.id and not target:
        raise InvalidOperation("You cannot deactivate your own account")
    user.is_active = target
    commit(db, "updating user status")
    logger.info("User %s set active=%s by %s", user.id, target, actor.id)
    return user


def set_role(db: Session, actor: User, user_id: int, role: UserRole) -> User:
    user = _user(db, user_id)
    if user.id == actor.id and role != UserRole.superadmin:
        raise InvalidOperation("You cannot remove your own superadmin role")
    user.role = role.value
    commit(db, "updating user role")
    logger.info("User %s given role %s by %s", user.id, role.value, actor.id)
    return user
