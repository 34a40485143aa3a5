from datetime import timedelta
from typing import Any, Dict, List

from core.exceptions import ValidationFailed
from models.directory import Product, StaffMember, Supplier
from models.invoice import Invoice
from models.order import Order
from models.roster import Roster
from models.stocktake import Stocktake
from models.takings import WeeklyTakings

from .crud import ResourceService


def _current(values: Dict[str, Any], item, field: str, default=None):
    if field in values:
        return values[field]
    if item is not None:
        return getattr(item, field)
    return default


def _money(value: float) -> float:
    return round(float(value or 0), 2)


def invoice_totals(items: List[Dict[str, Any]], tax_rate: float) -> Dict[str, Any]:
    """Fill each item's amount and return items plus subtotal, tax and total."""
    priced = []
    for item in items:
        item = dict(item)
        if item.get("amount") is None:
            item["amount"] = _money((item.get("quantity") or 0) * (item.get("unit_price") or 0))
        priced.append(item)
    subtotal = _money(sum(item["amount"] for item in priced))
    tax_amount = _money(subtotal * (tax_rate or 0) / 100)
    return {
        "items": priced,
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total": _money(subtotal + tax_amount),
    }


def day_total(day: Dict[str, Any]) -> float:
    if day.get("total") is not None:
        return _money(day["total"])
    return _money((day.get("cash") or 0) + (day.get("card") or 0) + (day.get("other") or 0))


class OrderService(ResourceService):
    label = "Order"
    clearable = ("order_number", "supplier_contact", "order_date", "delivery_date", "notes")

    def prepare(self, db, workspace, user, values, item=None):
        if values.get("total") is None and (item is None or {"subtotal", "tax_amount"} & set(values)):
            values["total"] = _money(
                (_current(values, item, "subtotal", 0) or 0) + (_current(values, item, "tax_amount", 0) or 0)
            )
        return values


class WeekService(ResourceService):
    """Rosters and takings cover a week starting on ``week_starting``."""

    def ordering(self):
        return [self.model.week_starting.desc(), self.model.id.desc()]

    def prepare(self, db, workspace, user, values, item=None):
        start = _current(values, item, "week_starting")
        if start is None:
            raise ValidationFailed("week_starting is required")
        if values.get("week_ending") is None and (item is None or "week_starting" in values):
            values["week_ending"] = start + timedelta(days=6)
        end = _current(values, item, "week_ending")
        if end is not None and end < start:
            raise ValidationFailed("week_ending must not be before week_starting")
        return values


class RosterService(WeekService):
    label = "Roster"


class TakingsService(WeekService):
    label = "Takings"

    def prepare(self, db, workspace, user, values, item=None):
        values = super().prepare(db, workspace, user, values, item)
        if "days" in values:
            values["days"] = [dict(day, total=day_total(day)) for day in values["days"] or []]
        if values.get("weekly_total") is None and (item is None or "days" in values):
            days = _current(values, item, "days", []) or []
            values["weekly_total"] = _money(sum(day_total(day) for day in days))
        return values


class StocktakeService(ResourceService):
    label = "Stocktake"
    clearable = ("stocktake_number", "date", "conducted_by", "notes")

    def prepare(self, db, workspace, user, values, item=None):
        if values.get("total_variance_value") is None and (item is None or "items" in values):
            items = _current(values, item, "items", []) or []
            values["total_variance_value"] = _money(sum(i.get("variance_value") or 0 for i in items))
        return values


class InvoiceService(ResourceService):
    label = "Invoice"
    clearable = ("client_email", "client_address", "due_date", "notes")

    def prepare(self, db, workspace, user, values, item=None):
        if item is None or "items" in values or "tax_rate" in values:
            items = _current(values, item, "items", []) or []
            tax_rate = _current(values, item, "tax_rate", 0) or 0
            values.update(invoice_totals(items, tax_rate))
            values["tax_rate"] = tax_rate
        return values


class DirectoryService(ResourceService):
    """Suppliers, products and staff: named entries unique within a workspace."""

    name_field = "name"

    def ordering(self):
        return [getattr(self.model, self.name_field), self.model.id]


class ProductService(DirectoryService):
    label = "Product"
    name_field = "product"
    conflict_message = "Product already exists"
    clearable = ("unit", "supplier_id", "notes")

    def prepare(self, db, workspace, user, values, item=None):
        supplier_id = values.get("supplier_id")
        if supplier_id is not None:
            found = db.query(Supplier.id).filter_by(id=supplier_id, workspace_id=workspace.id).first()
            if not found:
                raise ValidationFailed("Supplier not found in this workspace")
        return values


class SupplierService(DirectoryService):
    label = "Supplier"
    conflict_message = "Supplier already exists"
    clearable = ("contact_person", "phone", "email", "address", "notes")


class StaffService(DirectoryService):
    label = "Staff member"
    conflict_message = "Staff member already exists"
    clearable = ("position", "phone", "email", "hourly_rate", "notes")


orders = OrderService(Order)
rosters = RosterService(Roster)
stocktakes = StocktakeService(Stocktake)
invoices = InvoiceService(Invoice)
takings = TakingsService(WeeklyTakings)
suppliers = SupplierService(Supplier)
products = ProductService(Product)
staff = StaffService(StaffMember)
