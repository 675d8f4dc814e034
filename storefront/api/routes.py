from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.infrastructure.db import get_db
from storefront.application.authorization import Principal
from storefront.application.invoice import project_invoice
from storefront.application.returns import ReturnService
from storefront.application.service import OrderService
from storefront.application.schemas import (
    ApiResponse,
    CheckoutRequest,
    CheckoutResult,
    InvoiceRead,
    ReturnSubmit,
)
from .deps import get_principal

router = APIRouter(prefix="/orders", tags=["orders"])

@router.post("/checkout", response_model=ApiResponse[CheckoutResult], status_code=201)
def checkout(
    payload: CheckoutRequest,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Create an order from cart lines. Prices and VAT come from the catalog."""
    order = OrderService(db).checkout(
        principal,
        payload.customer.to_snapshot(),
        payload.items,
        voucher_code=payload.voucher_code,
        note=payload.note,
    )
    return ApiResponse(
        message="Order created successfully",
        data=CheckoutResult(order_id=order.id, status=order.status, total=order.total_amount),
    )

@router.get("/", response_model=ApiResponse[list[InvoiceRead]])
def list_my_orders(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    """Order history of the caller, newest first."""
    return ApiResponse(data=OrderService(db).list_for_user(principal))

@router.get("/{order_id}/invoice", response_model=ApiResponse[InvoiceRead])
def get_invoice(order_id: int, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    """Invoice for the owner of the order, or for an admin."""
    return ApiResponse(data=OrderService(db).invoice(principal, order_id))

@router.post("/{order_id}/return", response_model=ApiResponse[InvoiceRead], status_code=201)
def submit_return(
    order_id: int,
    payload: ReturnSubmit,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    order = ReturnService(db).submit(principal, order_id, payload.reason, payload.media_urls)
    return ApiResponse(message="Return request submitted successfully", data=project_invoice(order))
