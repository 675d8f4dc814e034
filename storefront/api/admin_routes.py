from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.infrastructure.db import get_db
from storefront.application.authorization import Principal, require_admin
from storefront.application.invoice import project_invoice
from storefront.application.reports import VatReportService
from storefront.application.returns import ReturnService
from storefront.application.service import OrderService
from storefront.application.schemas import (
    AdminOrderRead,
    ApiResponse,
    InvoiceRead,
    ReturnRequestRead,
    StatusUpdate,
    VatReport,
)
from .deps import get_principal

router = APIRouter(prefix="/admin", tags=["admin"])

@router.get("/orders", response_model=ApiResponse[list[AdminOrderRead]])
def list_orders(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    """All orders, newest first, with the statuses each may move to."""
    return ApiResponse(data=OrderService(db).list_all(principal))

@router.get("/orders/{order_id}/invoice", response_model=ApiResponse[InvoiceRead])
def get_invoice(order_id: int, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    service = OrderService(db)
    # Same projection as the customer view, behind the admin check
    require_admin(service.authorizer, principal)
    return ApiResponse(data=service.invoice(principal, order_id))

@router.put("/orders/{order_id}/status", response_model=ApiResponse[InvoiceRead])
def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    order = OrderService(db).transition_status(principal, order_id, payload.status)
    return ApiResponse(message=f"Order status updated to {order.status}", data=project_invoice(order))

@router.put("/orders/{order_id}/return/approve", response_model=ApiResponse[InvoiceRead])
def approve_return(order_id: int, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    order = ReturnService(db).approve(principal, order_id)
    return ApiResponse(
        message="Return request approved. Stock restored and refunded_at set.",
        data=project_invoice(order),
    )

@router.put("/orders/{order_id}/return/reject", response_model=ApiResponse[InvoiceRead])
def reject_return(order_id: int, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    order = ReturnService(db).reject(principal, order_id)
    return ApiResponse(message="Return request rejected", data=project_invoice(order))

@router.get("/return-requests", response_model=ApiResponse[list[ReturnRequestRead]])
def list_return_requests(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    return ApiResponse(data=ReturnService(db).list_requests(principal))

@router.get("/vat-report", response_model=ApiResponse[VatReport])
def vat_report(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    return ApiResponse(data=VatReportService(db).build(principal))
