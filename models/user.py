from datetime import datetime
import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from core.db.base import Base


class UserRole(str, enum.Enum):
    user = "user"
    admin = "admin"
    superadmin = "superadmin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=True)  # null for Google sign-in accounts
    avatar = Column(String(1000), nullable=True)

    role = Column(String(20), default=UserRole.user.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    permissions = Column(JSON, default=list)
    preferences = Column(JSON, default=dict)

    subscription_status = Column(String(30), default="trial")
    trial_end_date = Column(DateTime, nullable=True)
    subscription_start_date = Column(DateTime, nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_subscription_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    workspaces = relationship("Workspace", back_populates="owner")

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.admin.value, UserRole.superadmin.value)

    @property
    def is_superadmin(self) -> bool:
        return self.role == UserRole.superadmin.value
