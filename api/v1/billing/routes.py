from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from api.v1.auth.utils import get_current_user
from core.db.dependencies import get_billing, get_db, get_settings
from core.serialization import envelope
from models.user import User

from . import services

router = APIRouter(prefix="/subscription", tags=["Subscription"])


@router.get("/status")
def subscription_status(user: User = Depends(get_current_user), settings=Depends(get_settings)):
    return envelope(settings, **services.subscription_status(user))


@router.post("/create-checkout")
def create_checkout(user: User = Depends(get_current_user), db: Session = Depends(get_db),
                    settings=Depends(get_settings), billing=Depends(get_billing)):
    session = services.create_checkout(db, user, billing)
    return envelope(settings, **session)


@router.post("/create-portal")
def create_portal(user: User = Depends(get_current_user), settings=Depends(get_settings),
                  billing=Depends(get_billing)):
    return envelope(settings, url=services.create_portal(user, billing))


@router.post("/webhook")
async def webhook(request: Request, stripe_signature: Optional[str] = Header(default=None),
                  db: Session = Depends(get_db), billing=Depends(get_billing)):
    payload = await request.body()
    event = billing.construct_event(payload, stripe_signature)
    services.handle_event(db, event)
    return {"received": True}
