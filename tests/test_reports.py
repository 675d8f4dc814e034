from datetime import datetime
from decimal import Decimal

import pytest

from storefront.application.reports import VatReportService
from storefront.application.returns import ReturnService
from storefront.application.service import OrderService
from storefront.domain.errors import AuthorizationError
from tests.conftest import line

def test_vat_report(db, catalog, customer, snapshot, admin, clock):
    orders = OrderService(db, clock=clock)
    returns = ReturnService(db, clock=clock)

    clock.now = datetime(2026, 3, 15, 8, 0, 0)
    march = orders.checkout(customer, snapshot, [line(1, 1)])
    orders.transition_status(admin, march.id, "PAID")

    clock.now = datetime(2026, 4, 2, 8, 0, 0)
    april = orders.checkout(customer, snapshot, [line(2, 1)])
    returned = orders.checkout(customer, snapshot, [line(1, 1)])
    pending = orders.checkout(customer, snapshot, [line(1, 1)])
    cancelled = orders.checkout(customer, snapshot, [line(1, 1)])
    for order_id in (april.id, returned.id):
        orders.transition_status(admin, order_id, "PAID")
        orders.transition_status(admin, order_id, "COMPLETED")
    orders.transition_status(admin, cancelled.id, "CANCELLED")
    returns.submit(customer, returned.id, "Faded after one wash")
    returns.approve(admin, returned.id)
    assert pending.status == "PENDING"

    report = VatReportService(db).build(admin)
    assert report.total_vat == Decimal("25000.00")
    assert [(m.month, m.amount) for m in report.vat_by_month] == [
        ("2026-03", Decimal("20000.00")),
        ("2026-04", Decimal("5000.00")),
    ]
    assert [(c.category, c.vat) for c in report.vat_by_category] == [
        ("Accessories", Decimal("5000.00")),
        ("Shirts", Decimal("20000.00")),
    ]
    assert [(m.month, m.amount) for m in report.revenue_by_month] == [
        ("2026-03", Decimal("220000.00")),
        ("2026-04", Decimal("104999.99")),
    ]
    assert [(m.month, m.quantity) for m in report.quantity_by_month] == [
        ("2026-03", 1),
        ("2026-04", 1),
    ]

def test_empty_report(db, catalog, admin):
    report = VatReportService(db).build(admin)
    assert report.total_vat == Decimal("0.00")
    assert report.vat_by_month == []

def test_report_is_admin_only(db, catalog, customer):
    with pytest.raises(AuthorizationError):
        VatReportService(db).build(customer)

def test_revenue_ignores_voucher(db, catalog, customer, snapshot, admin):
    orders = OrderService(db)
    order = orders.checkout(customer, snapshot, [line(1, 2)], voucher_code="SALE10")
    orders.transition_status(admin, order.id, "PAID")
    report = VatReportService(db).build(admin)
    [revenue] = report.revenue_by_month
    assert revenue.amount == Decimal("440000.00")
    assert report.total_vat == Decimal("40000.00")
