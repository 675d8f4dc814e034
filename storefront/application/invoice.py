"""Invoice projection.

Reads nothing but the order aggregate: stored snapshots and the stored
summary. Customer and admin views call the same function.
"""

from storefront.domain.models import Order, OrderItem
from .schemas import (
    InvoiceCustomer,
    InvoiceLine,
    InvoiceRead,
    InvoiceReturnRequest,
    InvoiceSummary,
    InvoiceVoucher,
)


def _project_line(item: OrderItem) -> InvoiceLine:
    shown = item.amounts.rounded()
    return InvoiceLine(
        product_id=item.product_id,
        name=item.product_name,
        category=item.category_name,
        size=item.size,
        color=item.color,
        quantity=item.quantity,
        price=item.unit_price,
        tax_rate=item.tax_rate,
        subtotal=shown.subtotal,
        vat_amount=shown.vat,
        total=shown.total,
    )


def invoice_fields(order: Order) -> dict:
    voucher = None
    if order.voucher_code:
        voucher = InvoiceVoucher(
            code=order.voucher_code,
            kind=order.voucher_kind,
            discount=order.voucher_discount,
        )
    return_request = None
    if order.return_request is not None:
        return_request = InvoiceReturnRequest(
            reason=order.return_request.reason,
            media_urls=list(order.return_request.media_urls or []),
            created_at=order.return_request.created_at,
        )
    return dict(
        order_id=order.id,
        status=order.status,
        return_status=order.return_status,
        created_at=order.created_at,
        paid_at=order.paid_at,
        completed_at=order.completed_at,
        cancelled_at=order.cancelled_at,
        refunded_at=order.refunded_at,
        customer=InvoiceCustomer(
            name=order.customer_name,
            email=order.customer_email,
            phone=order.customer_phone,
            address=order.customer_address,
            type=order.customer_type,
            company_name=order.company_name,
            tax_code=order.tax_code,
        ),
        items=[_project_line(item) for item in order.items],
        summary=InvoiceSummary(
            subtotal=order.subtotal,
            voucher_discount=order.voucher_discount,
            final_subtotal=order.final_subtotal,
            total_vat=order.total_vat,
            total=order.total_amount,
        ),
        voucher=voucher,
        note=order.order_note,
        return_request=return_request,
    )


def project_invoice(order: Order) -> InvoiceRead:
    return InvoiceRead(**invoice_fields(order))
