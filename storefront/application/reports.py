"""VAT report over orders that count as sold.

Counted orders are PAID or COMPLETED and not refunded through an approved
return. VAT is summed exactly per line and rounded once per bucket.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.domain.lifecycle import OrderStatus, ReturnStatus
from storefront.domain.models import Order
from storefront.domain.pricing import ZERO, round_money
from .authorization import Authorizer, Principal, RoleAuthorizer, require_admin
from .schemas import CategoryVat, MonthlyAmount, MonthlyQuantity, VatReport

REPORTED_STATUSES = (OrderStatus.PAID.value, OrderStatus.COMPLETED.value)
UNCATEGORIZED = "Uncategorized"

class VatReportService:
    def __init__(self, db: Session, authorizer: Optional[Authorizer] = None):
        self.db = db
        self.authorizer = authorizer or RoleAuthorizer()

    def build(self, principal: Principal) -> VatReport:
        require_admin(self.authorizer, principal)
        orders = self.db.execute(
            select(Order)
            .where(
                Order.status.in_(REPORTED_STATUSES),
                Order.return_status != ReturnStatus.APPROVED.value,
            )
            .options(selectinload(Order.items))
        ).scalars().all()

        total_vat = ZERO
        vat_by_month = defaultdict(lambda: ZERO)
        vat_by_category = defaultdict(lambda: ZERO)
        revenue_by_month = defaultdict(lambda: ZERO)
        quantity_by_month = defaultdict(int)

        for order in orders:
            month = order.created_at.strftime("%Y-%m")
            for item in order.items:
                amounts = item.amounts
                vat = amounts.vat
                # Line totals, before any voucher
                revenue_by_month[month] += amounts.total
                total_vat += vat
                vat_by_month[month] += vat
                vat_by_category[item.category_name or UNCATEGORIZED] += vat
                quantity_by_month[month] += item.quantity

        return VatReport(
            total_vat=round_money(total_vat),
            vat_by_month=_monthly(vat_by_month),
            vat_by_category=[
                CategoryVat(category=name, vat=round_money(vat))
                for name, vat in sorted(vat_by_category.items())
            ],
            revenue_by_month=_monthly(revenue_by_month),
            quantity_by_month=[
                MonthlyQuantity(month=month, quantity=qty)
                for month, qty in sorted(quantity_by_month.items())
            ],
        )

def _monthly(buckets: dict) -> list[MonthlyAmount]:
    return [
        MonthlyAmount(month=month, amount=round_money(Decimal(amount)))
        for month, amount in sorted(buckets.items())
    ]
