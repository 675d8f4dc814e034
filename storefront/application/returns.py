"""Return/refund workflow for completed orders.

NONE -> REQUESTED (customer), REQUESTED -> APPROVED | REJECTED (admin).
Approval restores stock for every line in the same transaction that records
the refund; a rejected request is final.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Callable, Optional, Sequence

from storefront.core import get_logger
from storefront.core_settings import get_settings
from storefront.domain.errors import (
    InvalidReturnTransition,
    ReturnNotEligible,
    StorefrontError,
    ValidationError,
)
from storefront.domain.lifecycle import (
    OrderStatus,
    ReturnStatus,
    ensure_return_eligible,
    ensure_return_transition,
    utcnow,
)
from storefront.domain.models import Order, OrderReturnRequest
from storefront.infrastructure.catalog import InventoryGateway
from .authorization import Authorizer, Principal, RoleAuthorizer, require_admin, require_owner
from .schemas import ReturnRequestRead
from .service import load_order

logger = get_logger(__name__)

class ReturnService:
    def __init__(
        self,
        db: Session,
        authorizer: Optional[Authorizer] = None,
        clock: Callable[[], datetime] = utcnow,
        window_days: Optional[int] = None,
        max_media: Optional[int] = None,
    ):
        settings = get_settings()
        self.db = db
        self.authorizer = authorizer or RoleAuthorizer()
        self.clock = clock
        self.window_days = settings.RETURN_WINDOW_DAYS if window_days is None else window_days
        self.max_media = settings.MAX_RETURN_MEDIA if max_media is None else max_media
        self.inventory = InventoryGateway(db)

    def _clean_input(self, reason: Optional[str], media_urls: Optional[Sequence[str]]):
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Reason is required", code="reason_required")
        media = [m.strip() for m in (media_urls or [])]
        if len(media) > self.max_media:
            raise ValidationError(
                f"At most {self.max_media} media files can be attached",
                code="too_many_media",
            )
        if any(not m for m in media):
            raise ValidationError("Media references must not be empty", code="invalid_media")
        return reason, media

    def submit(
        self,
        principal: Principal,
        order_id: int,
        reason: Optional[str],
        media_urls: Optional[Sequence[str]] = None,
    ) -> Order:
        reason, media = self._clean_input(reason, media_urls)
        order = load_order(self.db, order_id)
        require_owner(
            self.authorizer, principal, order,
            "You can only submit return request for your own orders",
        )
        now = self.clock()
        try:
            ensure_return_eligible(
                order.status,
                order.return_status,
                order.completed_at,
                order.created_at,
                now,
                self.window_days,
            )
        except ReturnNotEligible as exc:
            logger.warning("return_rejected_ineligible", order_id=order_id, reason_code=exc.code)
            raise

        try:
            result = self.db.execute(
                update(Order)
                .where(
                    Order.id == order_id,
                    Order.status == OrderStatus.COMPLETED.value,
                    Order.return_status == ReturnStatus.NONE.value,
                )
                .values(return_status=ReturnStatus.REQUESTED.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ReturnNotEligible(
                    "Return request already exists or was processed",
                    code="return_already_exists",
                )
            self.db.add(OrderReturnRequest(
                order_id=order_id,
                user_id=principal.user_id,
                reason=reason,
                media_urls=media,
                created_at=now,
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("return_requested", order_id=order_id, media_count=len(media))
        self.db.expire(order)
        return load_order(self.db, order_id)

    def _resolve(self, principal: Principal, order_id: int, target: ReturnStatus) -> Order:
        require_admin(self.authorizer, principal)
        order = load_order(self.db, order_id)
        try:
            ensure_return_transition(order.return_status, target)
        except InvalidReturnTransition:
            logger.warning(
                "return_transition_rejected",
                order_id=order_id,
                return_status=order.return_status,
                target=target.value,
            )
            raise

        values = {"return_status": target.value}
        if target == ReturnStatus.APPROVED:
            values["refunded_at"] = self.clock()

        try:
            result = self.db.execute(
                update(Order)
                .where(Order.id == order_id, Order.return_status == ReturnStatus.REQUESTED.value)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidReturnTransition(
                    f"Return for order {order_id} was already resolved by another request"
                )
            if target == ReturnStatus.APPROVED:
                self.inventory.restore((item.product_id, item.quantity) for item in order.items)
            self.db.commit()
        except StorefrontError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.error("return_resolution_failed", exc_info=True, order_id=order_id)
            raise

        logger.info(
            "return_approved" if target == ReturnStatus.APPROVED else "return_rejected",
            order_id=order_id,
        )
        self.db.expire(order)
        return load_order(self.db, order_id)

    def approve(self, principal: Principal, order_id: int) -> Order:
        return self._resolve(principal, order_id, ReturnStatus.APPROVED)

    def reject(self, principal: Principal, order_id: int) -> Order:
        return self._resolve(principal, order_id, ReturnStatus.REJECTED)

    def list_requests(self, principal: Principal) -> list[ReturnRequestRead]:
        require_admin(self.authorizer, principal)
        rows = self.db.execute(
            select(OrderReturnRequest, Order)
            .join(Order, OrderReturnRequest.order_id == Order.id)
            .order_by(OrderReturnRequest.created_at.desc(), OrderReturnRequest.id.desc())
        ).all()
        return [
            ReturnRequestRead(
                id=request.id,
                order_id=order.id,
                user_id=request.user_id,
                reason=request.reason,
                media_urls=list(request.media_urls or []),
                created_at=request.created_at,
                return_status=order.return_status,
                order_status=order.status,
                customer_name=order.customer_name,
                order_created_at=order.created_at,
                total_amount=order.total_amount,
            )
            for request, order in rows
        ]
