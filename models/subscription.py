from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from core.db.base import Base


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    stripe_subscription_id = Column(String(255), unique=True, nullable=False)
    status = Column(String(30), nullable=False)
    plan_id = Column(String(255), nullable=True)
    amount = Column(Integer, nullable=True)  # cents
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    trial_end = Column(DateTime, nullable=True)
    canceled_at = Column(DateTime, nullable=True)
