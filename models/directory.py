from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, UniqueConstraint
from core.db.base import Base
from .mixins import WorkspaceScoped


class Supplier(WorkspaceScoped, Base):
    __tablename__ = "suppliers"

    name = Column(String(255), nullable=False)
    contact_person = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uix_supplier_workspace_name"),
    )


class Product(WorkspaceScoped, Base):
    __tablename__ = "products"

    product = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, default="general")
    unit = Column(String(50), nullable=True)
    value_per_unit = Column(Float, default=0)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("workspace_id", "product", "category", name="uix_product_workspace_name"),
    )


class StaffMember(WorkspaceScoped, Base):
    __tablename__ = "staff"

    name = Column(String(255), nullable=False)
    position = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    hourly_rate = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uix_staff_workspace_name"),
    )
