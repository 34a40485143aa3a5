from fastapi import APIRouter

from .crud import crud_router
from .schemas import (
    InvoiceCreate, InvoiceOut, InvoiceUpdate,
    OrderCreate, OrderOut, OrderUpdate,
    ProductCreate, ProductOut, ProductUpdate,
    RosterCreate, RosterOut, RosterUpdate,
    StaffCreate, StaffOut, StaffUpdate,
    StocktakeCreate, StocktakeOut, StocktakeUpdate,
    SupplierCreate, SupplierOut, SupplierUpdate,
    TakingsCreate, TakingsOut, TakingsUpdate,
)
from .services import invoices, orders, products, rosters, staff, stocktakes, suppliers, takings

router = APIRouter(prefix="/workspaces/{workspace_id}")

crud_router(orders, "orders", OrderCreate, OrderUpdate, OrderOut, "order", "orders",
            tags=["Orders"], router=router)
crud_router(rosters, "rosters", RosterCreate, RosterUpdate, RosterOut, "roster", "rosters",
            tags=["Rosters"], router=router)
crud_router(stocktakes, "stocktakes", StocktakeCreate, StocktakeUpdate, StocktakeOut, "stocktake", "stocktakes",
            tags=["Stocktakes"], router=router)
crud_router(invoices, "invoices", InvoiceCreate, InvoiceUpdate, InvoiceOut, "invoice", "invoices",
            tags=["Invoices"], router=router)
crud_router(takings, "takings", TakingsCreate, TakingsUpdate, TakingsOut, "takings", "takings",
            tags=["Takings"], router=router)
crud_router(suppliers, "suppliers", SupplierCreate, SupplierUpdate, SupplierOut, "supplier", "suppliers",
            tags=["Suppliers"], router=router)
crud_router(products, "products", ProductCreate, ProductUpdate, ProductOut, "product", "products",
            tags=["Products"], router=router)
crud_router(staff, "staff", StaffCreate, StaffUpdate, StaffOut, "staff_member", "staff",
            tags=["Staff"], router=router)
