"""Voucher catalog and resolution.

Resolution never raises for an unknown code; callers get a typed
``VoucherRejected`` and decide what to do with it.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Union

from .pricing import ZERO, round_money, to_decimal


class VoucherKind(str, Enum):
    PERCENTAGE = "percentage"
    FREE_SHIPPING = "free_shipping"


@dataclass(frozen=True)
class VoucherDefinition:
    kind: VoucherKind
    rate: Decimal = ZERO


VOUCHER_CATALOG: Dict[str, VoucherDefinition] = {
    "SALE10": VoucherDefinition(VoucherKind.PERCENTAGE, Decimal("0.10")),
    # shipping is always free in this deployment, so this is a marker only
    "FREESHIP": VoucherDefinition(VoucherKind.FREE_SHIPPING),
}


@dataclass(frozen=True)
class VoucherApplied:
    code: str
    kind: VoucherKind
    discount_amount: Decimal
    valid: bool = True


@dataclass(frozen=True)
class VoucherRejected:
    code: str
    reason: str
    valid: bool = False


VoucherResolution = Union[VoucherApplied, VoucherRejected]


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def resolve_voucher(
    code: Optional[str],
    subtotal: Decimal,
    catalog: Optional[Dict[str, VoucherDefinition]] = None,
) -> VoucherResolution:
    catalog = VOUCHER_CATALOG if catalog is None else catalog
    normalized = normalize_code(code)
    definition = catalog.get(normalized) if normalized else None
    if definition is None:
        return VoucherRejected(code=normalized, reason="not found")

    discount = ZERO
    if definition.kind == VoucherKind.PERCENTAGE:
        discount = round_money(to_decimal(subtotal) * definition.rate)
    return VoucherApplied(code=normalized, kind=definition.kind, discount_amount=discount)
