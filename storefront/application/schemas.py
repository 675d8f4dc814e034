from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Generic, Optional, TypeVar

from storefront.domain.customer import CustomerSnapshot

T = TypeVar("T")

# Requests

class CustomerIn(BaseModel):
    name: str
    email: str
    address: str
    phone: Optional[str] = None
    type: str = "INDIVIDUAL"
    company_name: Optional[str] = None
    tax_code: Optional[str] = None

    def to_snapshot(self) -> CustomerSnapshot:
        return CustomerSnapshot.create(
            name=self.name,
            email=self.email,
            address=self.address,
            phone=self.phone,
            type=self.type,
            company_name=self.company_name,
            tax_code=self.tax_code,
        )

class CartLine(BaseModel):
    # Prices are never accepted from the client
    product_id: int
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None

class CheckoutRequest(BaseModel):
    customer: CustomerIn
    items: list[CartLine]
    voucher_code: Optional[str] = None
    note: Optional[str] = None

class StatusUpdate(BaseModel):
    status: str

class ReturnSubmit(BaseModel):
    reason: str
    # References produced by the media storage service
    media_urls: list[str] = []

# Responses

class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str

class CheckoutResult(BaseModel):
    order_id: int
    status: str
    total: Decimal

class InvoiceCustomer(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    address: str
    type: str
    company_name: Optional[str] = None
    tax_code: Optional[str] = None

class InvoiceLine(BaseModel):
    product_id: int
    name: str
    category: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    price: Decimal
    tax_rate: Decimal
    subtotal: Decimal
    vat_amount: Decimal
    total: Decimal

class InvoiceSummary(BaseModel):
    subtotal: Decimal
    voucher_discount: Decimal
    final_subtotal: Decimal
    total_vat: Decimal
    total: Decimal

class InvoiceVoucher(BaseModel):
    code: str
    kind: str
    discount: Decimal

class InvoiceReturnRequest(BaseModel):
    reason: str
    media_urls: list[str]
    created_at: datetime

class InvoiceRead(BaseModel):
    order_id: int
    status: str
    return_status: str
    created_at: datetime
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    customer: InvoiceCustomer
    items: list[InvoiceLine]
    summary: InvoiceSummary
    voucher: Optional[InvoiceVoucher] = None
    note: Optional[str] = None
    return_request: Optional[InvoiceReturnRequest] = None

    class Config:
        frozen = True

class AdminOrderRead(InvoiceRead):
    allowed_statuses: list[str]

class ReturnRequestRead(BaseModel):
    id: int
    order_id: int
    user_id: int
    reason: str
    media_urls: list[str]
    created_at: datetime
    return_status: str
    order_status: str
    customer_name: str
    order_created_at: datetime
    total_amount: Decimal

class MonthlyAmount(BaseModel):
    month: str
    amount: Decimal

class MonthlyQuantity(BaseModel):
    month: str
    quantity: int

class CategoryVat(BaseModel):
    category: str
    vat: Decimal

class VatReport(BaseModel):
    total_vat: Decimal
    vat_by_month: list[MonthlyAmount]
    vat_by_category: list[CategoryVat]
    revenue_by_month: list[MonthlyAmount]
    quantity_by_month: list[MonthlyQuantity]
