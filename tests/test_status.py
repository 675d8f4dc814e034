import pytest
from sqlalchemy import update

from storefront.application import service as service_module
from storefront.application.service import OrderService
from storefront.domain.errors import AuthorizationError, InvalidTransition, ValidationError
from storefront.domain.models import Order
from tests.conftest import line, stock_of

@pytest.fixture
def order(db, catalog, customer, snapshot):
    return OrderService(db).checkout(customer, snapshot, [line(1, 2)])

def test_pay_then_complete(db, order, admin, clock):
    service = OrderService(db, clock=clock)
    paid = service.transition_status(admin, order.id, "PAID")
    assert paid.status == "PAID"
    assert paid.paid_at == clock.now
    assert paid.completed_at is None

    completed_time = clock.advance(days=2)
    completed = service.transition_status(admin, order.id, "completed")
    assert completed.status == "COMPLETED"
    assert completed.completed_at == completed_time
    assert completed.paid_at is not None

def test_completed_order_cannot_be_cancelled(db, order, admin):
    service = OrderService(db)
    service.transition_status(admin, order.id, "PAID")
    service.transition_status(admin, order.id, "COMPLETED")
    with pytest.raises(InvalidTransition) as exc:
        service.transition_status(admin, order.id, "CANCELLED")
    assert exc.value.message == "COMPLETED → CANCELLED is not allowed"
    reloaded = service_module.load_order(db, order.id)
    assert reloaded.status == "COMPLETED"
    assert reloaded.cancelled_at is None

def test_skipping_payment_is_rejected(db, order, admin):
    with pytest.raises(InvalidTransition):
        OrderService(db).transition_status(admin, order.id, "COMPLETED")

def test_cancel_paid_order_keeps_stock(db, order, admin):
    service = OrderService(db)
    service.transition_status(admin, order.id, "PAID")
    cancelled = service.transition_status(admin, order.id, "CANCELLED")
    assert cancelled.status == "CANCELLED"
    assert cancelled.cancelled_at is not None
    assert stock_of(db, 1) == 8

def test_unknown_status(db, order, admin):
    with pytest.raises(ValidationError):
        OrderService(db).transition_status(admin, order.id, "SHIPPED")

def test_customer_cannot_change_status(db, order, customer):
    with pytest.raises(AuthorizationError):
        OrderService(db).transition_status(customer, order.id, "PAID")
    assert service_module.load_order(db, order.id).status == "PENDING"

def test_guarded_write_detects_concurrent_change(db, order, admin, monkeypatch):
    real_load = service_module.load_order

    def load_then_race(session, order_id):
        loaded = real_load(session, order_id)
        # Another request cancels the order after we read it
        session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(status="CANCELLED")
            .execution_options(synchronize_session=False)
        )
        return loaded

    monkeypatch.setattr(service_module, "load_order", load_then_race)
    with pytest.raises(InvalidTransition):
        OrderService(db).transition_status(admin, order.id, "PAID")
    monkeypatch.undo()

    db.expire_all()
    assert service_module.load_order(db, order.id).paid_at is None
