from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload
from datetime import datetime
from typing import Callable, Optional, Sequence

from storefront.core import get_logger
from storefront.domain.customer import CustomerSnapshot
from storefront.domain.errors import (
    InvalidLineItem,
    InvalidTransition,
    OrderNotFound,
    StorefrontError,
    ValidationError,
    VoucherInvalid,
)
from storefront.domain.lifecycle import (
    OrderStatus,
    ReturnStatus,
    allowed_next_statuses,
    ensure_status_transition,
    parse_status,
    utcnow,
)
from storefront.domain.models import Order, OrderItem
from storefront.domain.pricing import ZERO, order_subtotal, summarize, validate_line
from storefront.domain.vouchers import normalize_code, resolve_voucher
from storefront.infrastructure.catalog import CatalogGateway, InventoryGateway
from .authorization import Authorizer, Principal, RoleAuthorizer, require_admin, require_owner_or_admin
from .invoice import invoice_fields, project_invoice
from .schemas import AdminOrderRead, CartLine, InvoiceRead

logger = get_logger(__name__)

# Timestamp column stamped when an order enters the given status
STATUS_TIMESTAMPS = {
    OrderStatus.PAID: "paid_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

def load_order(db: Session, order_id: int) -> Order:
    order = db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items), selectinload(Order.return_request))
    ).scalar_one_or_none()
    if order is None:
        raise OrderNotFound(order_id)
    return order

class OrderService:
    def __init__(
        self,
        db: Session,
        authorizer: Optional[Authorizer] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.authorizer = authorizer or RoleAuthorizer()
        self.clock = clock
        self.catalog = CatalogGateway(db)
        self.inventory = InventoryGateway(db)

    def _snapshot_line(self, position: int, line: CartLine) -> OrderItem:
        """Copy the catalog's current price and tax rate into a new order line."""
        entry = self.catalog.get(line.product_id)
        validate_line(entry.price, entry.tax_rate, line.quantity)
        return OrderItem(
            position=position,
            product_id=entry.product_id,
            product_name=entry.name,
            category_name=entry.category_name,
            size=line.size or None,
            color=line.color or None,
            unit_price=entry.price,
            tax_rate=entry.tax_rate,
            quantity=line.quantity,
        )

    def checkout(
        self,
        principal: Principal,
        customer: CustomerSnapshot,
        lines: Sequence[CartLine],
        voucher_code: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Order:
        """Create a PENDING order and take its stock in one transaction.

        Either the order, its lines and every stock decrement are committed
        together, or nothing is.
        """
        if not lines:
            raise ValidationError("Items cannot be empty", code="empty_cart")
        for line in lines:
            if line.quantity < 1:
                raise InvalidLineItem(
                    f"Invalid item: quantity for product {line.product_id} must be at least 1"
                )

        try:
            items = [self._snapshot_line(position, line) for position, line in enumerate(lines)]

            voucher = None
            discount = ZERO
            if normalize_code(voucher_code):
                voucher = resolve_voucher(voucher_code, order_subtotal(items))
                if not voucher.valid:
                    raise VoucherInvalid(f"Voucher {voucher.code} {voucher.reason}")
                discount = voucher.discount_amount
            summary = summarize(items, discount)

            # Reserve before the order row exists
            self.inventory.reserve((item.product_id, item.quantity) for item in items)
            order = Order(
                user_id=principal.user_id,
                customer_name=customer.name,
                customer_email=customer.email,
                customer_phone=customer.phone,
                customer_address=customer.address,
                customer_type=customer.type.value,
                company_name=customer.business.company_name if customer.business else None,
                tax_code=customer.business.tax_code if customer.business else None,
                order_note=(note or "").strip() or None,
                voucher_code=voucher.code if voucher else None,
                voucher_kind=voucher.kind.value if voucher else None,
                voucher_discount=summary.voucher_discount,
                subtotal=summary.subtotal,
                total_vat=summary.total_vat,
                total_amount=summary.total,
                status=OrderStatus.PENDING.value,
                return_status=ReturnStatus.NONE.value,
                created_at=self.clock(),
                items=items,
            )
            self.db.add(order)
            self.db.commit()
        except StorefrontError as exc:
            self.db.rollback()
            logger.warning("order_rejected", user_id=principal.user_id, code=exc.code)
            raise
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "order_created",
            order_id=order.id,
            user_id=principal.user_id,
            lines=len(items),
            voucher=order.voucher_code,
            total=str(order.total_amount),
        )
        return load_order(self.db, order.id)

    def get(self, principal: Principal, order_id: int) -> Order:
        order = load_order(self.db, order_id)
        require_owner_or_admin(self.authorizer, principal, order)
        return order

    def invoice(self, principal: Principal, order_id: int) -> InvoiceRead:
        return project_invoice(self.get(principal, order_id))

    def list_for_user(self, principal: Principal) -> list[InvoiceRead]:
        orders = self.db.execute(
            select(Order)
            .where(Order.user_id == principal.user_id)
            .options(selectinload(Order.items), selectinload(Order.return_request))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars().all()
        return [project_invoice(order) for order in orders]

    def list_all(self, principal: Principal) -> list[AdminOrderRead]:
        require_admin(self.authorizer, principal)
        orders = self.db.execute(
            select(Order)
            .options(selectinload(Order.items), selectinload(Order.return_request))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars().all()
        return [
            AdminOrderRead(
                **invoice_fields(order),
                allowed_statuses=[s.value for s in allowed_next_statuses(order.status)],
            )
            for order in orders
        ]

    def transition_status(self, principal: Principal, order_id: int, target: str) -> Order:
        require_admin(self.authorizer, principal)
        target_status = parse_status(target)
        order = load_order(self.db, order_id)
        current = OrderStatus(order.status)
        try:
            ensure_status_transition(current, target_status)
        except InvalidTransition:
            logger.warning(
                "order_status_rejected",
                order_id=order_id,
                current=current.value,
                target=target_status.value,
            )
            raise

        values = {"status": target_status.value}
        stamp = STATUS_TIMESTAMPS.get(target_status)
        if stamp:
            values[stamp] = self.clock()

        try:
            # Guarded write: only applies if nobody moved the order meanwhile
            result = self.db.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == current.value)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidTransition(
                    f"{current.value} → {target_status.value} is no longer possible, "
                    f"the order was changed by another request"
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "order_status_changed",
            order_id=order_id,
            previous=current.value,
            status=target_status.value,
        )
        self.db.expire(order)
        return load_order(self.db, order_id)
