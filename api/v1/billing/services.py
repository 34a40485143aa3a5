import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from core.db.session import commit
from core.exceptions import InvalidOperation
from integrations.billing import BillingClient
from models.subscription import Subscription
from models.user import User

logger = logging.getLogger(__name__)

SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)


def _from_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.utcfromtimestamp(int(value))


def subscription_status(user: User) -> Dict[str, Any]:
    days_left = 0
    if user.trial_end_date:
        remaining = (user.trial_end_date - datetime.utcnow()).total_seconds() / 86400
        days_left = max(0, math.ceil(remaining))
    status = user.subscription_status or "trial"
    return {
        "status": status,
        "trial_end_date": user.trial_end_date,
        "trial_days_left": days_left,
        "is_trial": status == "trial",
        "is_active": status == "active" or (status == "trial" and days_left > 0),
        "subscription_start_date": user.subscription_start_date,
    }


def create_checkout(db: Session, user: User, billing: BillingClient) -> Dict[str, str]:
    customer_id = billing.ensure_customer(user.stripe_customer_id, user.email, user.name, user.id)
    if customer_id != user.stripe_customer_id:
        user.stripe_customer_id = customer_id
        commit(db, "saving billing customer")
    return billing.create_checkout_session(customer_id, user.id)


def create_portal(user: User, billing: BillingClient) -> str:
    billing.require_configured()
    if not user.stripe_customer_id:
        raise InvalidOperation("No subscription found")
    return billing.create_portal_session(user.stripe_customer_id)


def _owner_of(db: Session, subscription: Dict[str, Any]) -> Optional[User]:
    metadata = subscription.get("metadata") or {}
    user_id = metadata.get("userId") or metadata.get("user_id")
    if user_id:
        try:
            user = db.query(User).filter_by(id=int(user_id)).first()
        except (TypeError, ValueError):
            user = None
        if user:
            return user
    customer = subscription.get("customer")
    if customer:
        return db.query(User).filter_by(stripe_customer_id=customer).first()
    return None


def _price(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    if items:
        return items[0].get("price") or {}
    return {}


def handle_event(db: Session, event: Dict[str, Any]) -> bool:
    """Apply a verified webhook event; returns whether it was acted on."""
    kind = event.get("type")
    if kind not in SUBSCRIPTION_EVENTS:
        logger.info("Ignoring stripe event %s", kind)
        return False

    data = (event.get("data") or {}).get("object") or {}
    sub_id = data.get("id")
    if not sub_id:
        logger.warning("Stripe event %s carried no subscription id", kind)
        return False

    user = _owner_of(db, data)
    deleted = kind == "customer.subscription.deleted"
    status = "canceled" if deleted else data.get("status", "active")

    row = db.query(Subscription).filter_by(stripe_subscription_id=sub_id).first()
    if row is None:
        row = Subscription(stripe_subscription_id=sub_id)
        db.add(row)
    if user is not None:
        row.user_id = user.id
    row.status = status
    price = _price(data)
    row.plan_id = price.get("id") or row.plan_id or "pro_monthly"
    row.amount = price.get("unit_amount") or row.amount
    row.current_period_start = _from_timestamp(data.get("current_period_start")) or row.current_period_start
    row.current_period_end = _from_timestamp(data.get("current_period_end")) or row.current_period_end
    row.trial_end = _from_timestamp(data.get("trial_end"))
    row.canceled_at = _from_timestamp(data.get("canceled_at"))
    if deleted and row.canceled_at is None:
        row.canceled_at = datetime.utcnow()

    if user is None:
        logger.warning("Stripe subscription %s has no matching user", sub_id)
    else:
        user.subscription_status = status
        if not deleted:
            user.stripe_subscription_id = sub_id
            if user.subscription_start_date is None and status == "active":
                user.subscription_start_date = datetime.utcnow()
        if data.get("customer") and not user.stripe_customer_id:
            user.stripe_customer_id = data["customer"]

    commit(db, "applying stripe subscription event")
    logger.info("Applied %s for subscription %s", kind, sub_id)
    return True
