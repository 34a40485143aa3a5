from sqlalchemy import Column, String, Text, Float, DateTime, JSON
from core.db.base import Base
from .mixins import WorkspaceScoped


class Order(WorkspaceScoped, Base):
    __tablename__ = "orders"

    order_number = Column(String(100), nullable=True)
    supplier = Column(String(255), nullable=False)
    supplier_contact = Column(String(255), nullable=True)
    order_date = Column(DateTime, nullable=True)
    delivery_date = Column(DateTime, nullable=True)
    items = Column(JSON, default=list)
    subtotal = Column(Float, default=0)
    tax_amount = Column(Float, default=0)
    total = Column(Float, default=0)
    status = Column(String(20), default="pending", nullable=False)
    notes = Column(Text, nullable=True)
