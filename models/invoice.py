from sqlalchemy import Column, String, Text, Float, Date, JSON
from core.db.base import Base
from .mixins import WorkspaceScoped


class Invoice(WorkspaceScoped, Base):
    __tablename__ = "invoices"

    invoice_number = Column(String(100), nullable=False)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True)
    client_address = Column(Text, nullable=True)
    items = Column(JSON, default=list)
    tax_rate = Column(Float, default=0)
    subtotal = Column(Float, default=0)
    tax_amount = Column(Float, default=0)
    total = Column(Float, default=0)
    status = Column(String(20), default="draft", nullable=False)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
