from decimal import Decimal

import pytest

from storefront.application.authorization import Principal
from storefront.application.invoice import project_invoice
from storefront.application.service import OrderService, load_order
from storefront.domain.errors import AuthorizationError, OrderNotFound
from tests.conftest import line

@pytest.fixture
def order(db, catalog, customer, snapshot):
    return OrderService(db).checkout(
        customer, snapshot, [line(1, 2, size="L"), line(2, 3)], voucher_code="SALE10", note="Gift wrap"
    )

def test_projection_is_idempotent(db, order):
    first = project_invoice(load_order(db, order.id))
    second = project_invoice(load_order(db, order.id))
    assert first == second

def test_invoice_lines_and_summary(db, order, customer):
    invoice = OrderService(db).invoice(customer, order.id)
    tee, tote = invoice.items
    assert tee.name == "Basic tee"
    assert tee.size == "L"
    assert tee.subtotal == Decimal("400000.00")
    assert tee.vat_amount == Decimal("40000.00")
    assert tee.total == Decimal("440000.00")

    # 99999.99 x 3 = 299999.97, 5% VAT = 14999.9985
    assert tote.subtotal == Decimal("299999.97")
    assert tote.vat_amount == Decimal("15000.00")
    assert tote.category == "Accessories"

    summary = invoice.summary
    assert summary.subtotal == Decimal("699999.97")
    assert summary.voucher_discount == Decimal("70000.00")
    assert summary.final_subtotal == Decimal("629999.97")
    assert summary.total_vat == Decimal("55000.00")
    assert summary.total == Decimal("684999.97")

    assert invoice.voucher.code == "SALE10"
    assert invoice.voucher.discount == Decimal("70000.00")
    assert invoice.note == "Gift wrap"
    assert invoice.customer.name == "Lan Nguyen"
    assert invoice.customer.type == "INDIVIDUAL"
    assert invoice.return_request is None

def test_invoice_visible_to_owner_and_admin_only(db, order, customer, other_customer, admin):
    service = OrderService(db)
    assert service.invoice(admin, order.id).order_id == order.id
    with pytest.raises(AuthorizationError):
        service.invoice(other_customer, order.id)

def test_missing_order(db, catalog, customer):
    with pytest.raises(OrderNotFound):
        OrderService(db).invoice(customer, 12345)

def test_history_is_per_user(db, order, catalog, customer, other_customer, snapshot):
    service = OrderService(db)
    service.checkout(other_customer, snapshot, [line(1, 1)])
    assert [i.order_id for i in service.list_for_user(customer)] == [order.id]
    assert len(service.list_for_user(other_customer)) == 1

def test_admin_listing_shows_next_statuses(db, order, admin, customer):
    service = OrderService(db)
    [entry] = service.list_all(admin)
    assert entry.allowed_statuses == ["PAID", "CANCELLED"]
    service.transition_status(admin, order.id, "PAID")
    service.transition_status(admin, order.id, "COMPLETED")
    [entry] = service.list_all(admin)
    assert entry.allowed_statuses == []
    with pytest.raises(AuthorizationError):
        service.list_all(customer)

class SupportDeskAuthorizer:
    """Lets support staff read any order without the admin role."""

    def is_admin(self, principal):
        return principal.user_id == 500

    def owns(self, principal, order):
        return order.user_id == principal.user_id

def test_authorizer_is_injectable(db, order):
    service = OrderService(db, authorizer=SupportDeskAuthorizer())
    support = Principal(user_id=500)
    assert service.invoice(support, order.id).order_id == order.id
    assert [entry.order_id for entry in service.list_all(support)] == [order.id]
