import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.db.dependencies import get_db, get_settings
from core.serialization import envelope
from models.user import User

from .schemas import GoogleAuthRequest, LoginRequest, ProfileUpdate, RegisterRequest, UserOut
from .services import authenticate_user, google_sign_in, register_user, update_profile
from .utils import get_current_user, token_for

router = APIRouter(prefix="/auth", tags=["Auth"])

logger = logging.getLogger(__name__)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db), settings=Depends(get_settings)):
    user = register_user(db, settings, data)
    return envelope(
        settings,
        message="User registered successfully",
        token=token_for(settings, user),
        user=UserOut.model_validate(user),
    )


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db), settings=Depends(get_settings)):
    user = authenticate_user(db, data.email, data.password)
    return envelope(settings, token=token_for(settings, user), user=UserOut.model_validate(user))


@router.get("/me")
def me(user: User = Depends(get_current_user), settings=Depends(get_settings)):
    return envelope(settings, user=UserOut.model_validate(user))


@router.put("/profile")
def profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings=Depends(get_settings),
):
    user = update_profile(db, user, data)
    return envelope(settings, message="Profile updated", user=UserOut.model_validate(user))


@router.post("/google")
def google(data: GoogleAuthRequest, db: Session = Depends(get_db), settings=Depends(get_settings)):
    user, created = google_sign_in(db, settings, data.credential)
    if created:
        logger.info("Created user %s from Google sign-in", user.id)
    return envelope(
        settings,
        token=token_for(settings, user),
        user=UserOut.model_validate(user),
        is_new_user=created,
    )
