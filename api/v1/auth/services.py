import logging
from datetime import datetime, timedelta
from typing import Tuple

from google.oauth2 import id_token
from google.auth.transport import requests as grequests
from sqlalchemy.orm import Session

from core.db.session import commit
from core.exceptions import Conflict, DependencyUnavailable, Unauthorized, ValidationFailed
from models.user import User
from models.workspace import Workspace, WorkspaceType

from .schemas import ProfileUpdate, RegisterRequest
from .utils import hash_password, verify_password

logger = logging.getLogger(__name__)


def _new_user(settings, email: str, name: str, **fields) -> User:
    return User(
        email=email,
        name=name,
        trial_end_date=datetime.utcnow() + timedelta(days=settings.STRIPE_TRIAL_DAYS),
        subscription_status="trial",
        permissions=[],
        preferences={},
        **fields,
    )


def _add_personal_workspace(db: Session, user: User) -> Workspace:
    workspace = Workspace(
        owner=user,
        type=WorkspaceType.personal,
        name=f"{user.name}'s Workspace",
        description="Your personal workspace",
        is_default=True,
    )
    db.add(workspace)
    return workspace


def register_user(db: Session, settings, data: RegisterRequest) -> User:
    """Create a user together with their default personal workspace."""
    email = data.email.lower()
    if db.query(User).filter_by(email=email).first():
        raise Conflict("User already exists")

    user = _new_user(settings, email, data.name, password_hash=hash_password(data.password))
    db.add(user)
    _add_personal_workspace(db, user)
    commit(db, "registering user", conflict_message="User already exists")
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter_by(email=email.lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Unauthorized("Account is deactivated")

    user.last_login = datetime.utcnow()
    commit(db, "stamping last login")
    return user


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    if data.name is not None:
        if not data.name.strip():
            raise ValidationFailed("Name is required")
        user.name = data.name.strip()
    if data.avatar is not None:
        user.avatar = data.avatar
    if data.preferences is not None:
        # Merge so clients can send a partial preferences object
        user.preferences = {**(user.preferences or {}), **data.preferences}
    commit(db, "updating profile")
    db.refresh(user)
    return user


def google_sign_in(db: Session, settings, credential: str) -> Tuple[User, bool]:
    """Verify a Google ID token and return ``(user, created)``."""
    if not settings.GOOGLE_CLIENT_ID:
        raise DependencyUnavailable("Google sign-in not configured")
    try:
        idinfo = id_token.verify_oauth2_token(credential, grequests.Request(), settings.GOOGLE_CLIENT_ID)
    except ValueError:
        raise Unauthorized("Invalid ID token")

    email = (idinfo.get("email") or "").lower()
    if not email:
        raise ValidationFailed("Email not found in token")

    user = db.query(User).filter_by(email=email).first()
    created = False
    if not user:
        user = _new_user(
            settings,
            email,
            idinfo.get("name") or email.split("@")[0],
            avatar=idinfo.get("picture"),
        )
        db.add(user)
        _add_personal_workspace(db, user)
        created = True
    elif not user.is_active:
        raise Unauthorized("Account is deactivated")

    user.last_login = datetime.utcnow()
    commit(db, "google sign-in", conflict_message="User already exists")
    db.refresh(user)
    return user, created
