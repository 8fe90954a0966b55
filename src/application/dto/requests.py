"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API handlers and services.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.core.entities import (
    OrderLine,
    ProductCategory,
    ProductionMaterial,
)


# =============================================================================
# Inventory
# =============================================================================


class CreateProductRequest(BaseModel):
    """Request to register a product.

    A non-zero current_stock is booked as an opening adjustment movement.
    """

    sku: str = Field(..., min_length=1, description="Unique stock keeping unit", examples=["RM-STEEL-01"])
    name: str = Field(..., min_length=1, description="Product name")
    description: str | None = None
    category: ProductCategory = Field(..., description="raw-material, finished-good or component")
    unit: str = Field(default="pcs", description="Unit of measure", examples=["pcs", "kg", "m"])
    current_stock: float = Field(default=0.0, ge=0, description="Opening stock")
    min_stock_level: float = Field(default=0.0, ge=0)
    max_stock_level: float = Field(default=1000.0, ge=0)
    unit_cost: float = Field(default=0.0, ge=0)
    selling_price: float | None = Field(default=None, ge=0)
    supplier_id: str | None = Field(
        default=None,
        description="Supplier used for automatic replenishment",
    )


class UpdateProductRequest(BaseModel):
    """Partial product update. Stock is changed only through movements."""

    sku: str | None = Field(default=None, min_length=1)
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: ProductCategory | None = None
    unit: str | None = None
    min_stock_level: float | None = Field(default=None, ge=0)
    max_stock_level: float | None = Field(default=None, ge=0)
    unit_cost: float | None = Field(default=None, ge=0)
    selling_price: float | None = Field(default=None, ge=0)
    supplier_id: str | None = None


class AdjustStockRequest(BaseModel):
    """Manual stock adjustment."""

    direction: Literal["in", "out"] = Field(..., description="Increase (in) or decrease (out)")
    quantity: float = Field(..., gt=0, description="Quantity to adjust")
    notes: str | None = Field(default=None, examples=["Damaged in storage"])


class CountStockRequest(BaseModel):
    """Physical count; the difference is booked as one adjustment."""

    counted_quantity: float = Field(..., ge=0, description="Quantity found on hand")
    notes: str | None = None


# =============================================================================
# Orders
# =============================================================================


class OrderLineRequest(BaseModel):
    """One priced order line."""

    product_id: int = Field(..., description="Product ID")
    quantity: float = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)

    def to_entity(self) -> OrderLine:
        return OrderLine(
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


class CreateSalesOrderRequest(BaseModel):
    """Request to create a pending sales order."""

    customer_id: str = Field(..., min_length=1, description="Customer reference")
    items: list[OrderLineRequest] = Field(..., min_length=1)
    delivery_date: datetime | None = None
    notes: str | None = None
    order_number: str | None = Field(
        default=None,
        description="Explicit order number; generated when omitted",
        examples=["SO0042"],
    )


class CreatePurchaseOrderRequest(BaseModel):
    """Request to create a pending purchase order."""

    supplier_id: str = Field(..., min_length=1, description="Supplier reference")
    items: list[OrderLineRequest] = Field(..., min_length=1)
    expected_delivery: date | None = None
    notes: str | None = None
    order_number: str | None = Field(default=None, examples=["PO0042"])


class ProductionMaterialRequest(BaseModel):
    """A material consumed when production starts."""

    product_id: int
    quantity: float = Field(..., gt=0)
    unit_cost: float | None = Field(
        default=None,
        ge=0,
        description="Defaults to the material's current unit cost",
    )

    def to_entity(self) -> ProductionMaterial:
        return ProductionMaterial(
            product_id=self.product_id,
            quantity=self.quantity,
            unit_cost=self.unit_cost,
        )


class CreateProductionOrderRequest(BaseModel):
    """Request to create a pending production order."""

    product_id: int = Field(..., description="Finished product to build")
    quantity: float = Field(..., gt=0)
    materials: list[ProductionMaterialRequest] = Field(..., min_length=1)
    sales_order_id: int | None = None
    order_number: str | None = Field(default=None, examples=["MO0042"])
    notes: str | None = None


# =============================================================================
# Finance
# =============================================================================


class PayInvoiceRequest(BaseModel):
    """Request to settle an invoice from a bank account."""

    invoice_model: Literal["Invoice", "PurchaseInvoice"] = Field(
        ...,
        description="Invoice for sales invoices, PurchaseInvoice for purchase invoices",
    )
    bank_account_id: int
    notes: str | None = None


class CreateExpenseRequest(BaseModel):
    """Request to book an expense against a bank account."""

    title: str = Field(..., min_length=1, examples=["Warehouse rent"])
    amount: float = Field(..., gt=0)
    category: str = Field(default="general", examples=["rent", "utilities"])
    bank_account_id: int
    date: datetime | None = None
    notes: str | None = None


class CreateBankAccountRequest(BaseModel):
    """Request to open a bank account."""

    name: str = Field(..., min_length=1, examples=["Operating account"])
    balance: float = Field(default=0.0, ge=0, description="Opening balance")


class RenameBankAccountRequest(BaseModel):
    name: str = Field(..., min_length=1)
