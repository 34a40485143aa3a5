import datetime as dt
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

OrderStatus = Literal["pending", "ordered", "received", "cancelled"]
RosterStatus = Literal["draft", "published", "archived"]
StocktakeStatus = Literal["draft", "in_progress", "completed"]
InvoiceStatus = Literal["draft", "sent", "paid", "overdue", "cancelled"]
TakingsStatus = Literal["draft", "submitted", "reconciled"]


class ResourceOut(BaseModel):
    id: int
    workspace_id: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PartialUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")


# -----------------------------
#  Orders
# -----------------------------

class OrderCreate(BaseModel):
    supplier: str = Field(min_length=1, max_length=255)
    order_number: Optional[str] = None
    supplier_contact: Optional[str] = None
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    items: List[Dict[str, Any]] = []
    subtotal: float = 0
    tax_amount: float = 0
    total: Optional[float] = None
    status: OrderStatus = "pending"
    notes: Optional[str] = None


class OrderUpdate(PartialUpdate):
    supplier: Optional[str] = Field(default=None, min_length=1, max_length=255)
    order_number: Optional[str] = None
    supplier_contact: Optional[str] = None
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    items: Optional[List[Dict[str, Any]]] = None
    subtotal: Optional[float] = None
    tax_amount: Optional[float] = None
    total: Optional[float] = None
    status: Optional[OrderStatus] = None
    notes: Optional[str] = None


class OrderOut(ResourceOut):
    order_number: Optional[str] = None
    supplier: str
    supplier_contact: Optional[str] = None
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    items: List[Dict[str, Any]] = []
    subtotal: float = 0
    tax_amount: float = 0
    total: float = 0
    status: str
    notes: Optional[str] = None


# -----------------------------
#  Rosters
# -----------------------------

class RosterCreate(BaseModel):
    week_starting: date
    week_ending: Optional[date] = None
    shifts: List[Dict[str, Any]] = []
    status: RosterStatus = "draft"
    notes: Optional[str] = None


class RosterUpdate(PartialUpdate):
    week_starting: Optional[date] = None
    week_ending: Optional[date] = None
    shifts: Optional[List[Dict[str, Any]]] = None
    status: Optional[RosterStatus] = None
    notes: Optional[str] = None


class RosterOut(ResourceOut):
    week_starting: date
    week_ending: Optional[date] = None
    shifts: List[Dict[str, Any]] = []
    status: str
    notes: Optional[str] = None


# -----------------------------
#  Stocktakes
# -----------------------------

class StocktakeCreate(BaseModel):
    stocktake_number: Optional[str] = None
    date: Optional[dt.date] = None
    conducted_by: Optional[str] = None
    items: List[Dict[str, Any]] = []
    total_variance_value: Optional[float] = None
    status: StocktakeStatus = "draft"
    notes: Optional[str] = None


class StocktakeUpdate(PartialUpdate):
    stocktake_number: Optional[str] = None
    date: Optional[dt.date] = None
    conducted_by: Optional[str] = None
    items: Optional[List[Dict[str, Any]]] = None
    total_variance_value: Optional[float] = None
    status: Optional[StocktakeStatus] = None
    notes: Optional[str] = None


class StocktakeOut(ResourceOut):
    stocktake_number: Optional[str] = None
    date: Optional[dt.date] = None
    conducted_by: Optional[str] = None
    items: List[Dict[str, Any]] = []
    total_variance_value: float = 0
    status: str
    notes: Optional[str] = None


# -----------------------------
#  Invoices
# -----------------------------

class InvoiceItem(BaseModel):
    description: str
    quantity: float = Field(default=1, ge=0)
    unit_price: float = 0
    amount: Optional[float] = None


class InvoiceCreate(BaseModel):
    invoice_number: str = Field(min_length=1, max_length=100)
    client_name: str = Field(min_length=1, max_length=255)
    client_email: Optional[EmailStr] = None
    client_address: Optional[str] = None
    items: List[InvoiceItem] = []
    tax_rate: float = Field(default=0, ge=0, le=100)
    status: InvoiceStatus = "draft"
    due_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceUpdate(PartialUpdate):
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    client_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    client_email: Optional[EmailStr] = None
    client_address: Optional[str] = None
    items: Optional[List[InvoiceItem]] = None
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
    status: Optional[InvoiceStatus] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class InvoiceOut(ResourceOut):
    invoice_number: str
    client_name: str
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    items: List[Dict[str, Any]] = []
    tax_rate: float = 0
    subtotal: float = 0
    tax_amount: float = 0
    total: float = 0
    status: str
    due_date: Optional[date] = None
    notes: Optional[str] = None


# -----------------------------
#  Weekly takings
# -----------------------------

class DayTakings(BaseModel):
    date: Optional[str] = None
    day: Optional[str] = None
    cash: float = 0
    card: float = 0
    other: float = 0
    total: Optional[float] = None

    model_config = ConfigDict(extra="allow")


class TakingsCreate(BaseModel):
    week_starting: date
    week_ending: Optional[date] = None
    days: List[DayTakings] = []
    weekly_total: Optional[float] = None
    status: TakingsStatus = "draft"
    notes: Optional[str] = None


class TakingsUpdate(PartialUpdate):
    week_starting: Optional[date] = None
    week_ending: Optional[date] = None
    days: Optional[List[DayTakings]] = None
    weekly_total: Optional[float] = None
    status: Optional[TakingsStatus] = None
    notes: Optional[str] = None


class TakingsOut(ResourceOut):
    week_starting: date
    week_ending: Optional[date] = None
    days: List[Dict[str, Any]] = []
    weekly_total: float = 0
    status: str
    notes: Optional[str] = None


# -----------------------------
#  Suppliers, products and staff
# -----------------------------

class SupplierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class SupplierUpdate(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class SupplierOut(ResourceOut):
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class ProductCreate(BaseModel):
    product: str = Field(min_length=1, max_length=255)
    category: str = Field(default="general", min_length=1, max_length=100)
    unit: Optional[str] = None
    value_per_unit: float = Field(default=0, ge=0)
    supplier_id: Optional[int] = None
    notes: Optional[str] = None


class ProductUpdate(PartialUpdate):
    product: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    unit: Optional[str] = None
    value_per_unit: Optional[float] = Field(default=None, ge=0)
    supplier_id: Optional[int] = None
    notes: Optional[str] = None


class ProductOut(ResourceOut):
    product: str
    category: str
    unit: Optional[str] = None
    value_per_unit: float = 0
    supplier_id: Optional[int] = None
    notes: Optional[str] = None


class StaffCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    position: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class StaffUpdate(PartialUpdate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    position: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class StaffOut(ResourceOut):
    name: str
    position: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    hourly_rate: Optional[float] = None
    notes: Optional[str] = None
