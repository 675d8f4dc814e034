"""Money and VAT arithmetic for order lines and order summaries.

All amounts are ``Decimal``. Line values are kept exact while summing; the
order-level aggregates are rounded half-up to the minor unit exactly once.
Per-line values shown on an invoice are rounded independently for display
and never fed back into the sums.

VAT policy: tax is computed on the undiscounted line subtotals. A voucher
discount lowers the subtotal the customer pays, not the per-line tax base.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Union

from .errors import InvalidLineItem

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")

Number = Union[Decimal, int, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # floats would carry binary noise into money sums
        return Decimal(repr(value))
    return Decimal(value)


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


class PricedLine(Protocol):
    unit_price: Decimal
    tax_rate: Decimal
    quantity: int


@dataclass(frozen=True)
class LineAmounts:
    subtotal: Decimal
    vat: Decimal
    total: Decimal

    def rounded(self) -> "LineAmounts":
        """Display values, each rounded on its own."""
        return LineAmounts(
            subtotal=round_money(self.subtotal),
            vat=round_money(self.vat),
            total=round_money(self.total),
        )


@dataclass(frozen=True)
class OrderSummary:
    subtotal: Decimal
    voucher_discount: Decimal
    final_subtotal: Decimal
    total_vat: Decimal
    total: Decimal


def validate_line(unit_price: Number, tax_rate: Number, quantity: int) -> None:
    price = to_decimal(unit_price)
    rate = to_decimal(tax_rate)
    if price < ZERO:
        raise InvalidLineItem(f"Unit price must be non-negative, got {price}")
    if rate < ZERO or rate > ONE:
        raise InvalidLineItem(f"Tax rate must be between 0 and 1, got {rate}")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidLineItem(f"Quantity must be a positive integer, got {quantity!r}")


def line_amounts(unit_price: Number, tax_rate: Number, quantity: int) -> LineAmounts:
    """Exact subtotal, VAT and total for one line."""
    validate_line(unit_price, tax_rate, quantity)
    subtotal = to_decimal(unit_price) * quantity
    vat = subtotal * to_decimal(tax_rate)
    return LineAmounts(subtotal=subtotal, vat=vat, total=subtotal + vat)


def _exact_sums(lines: Iterable[PricedLine]):
    subtotal = ZERO
    vat = ZERO
    count = 0
    for line in lines:
        amounts = line_amounts(line.unit_price, line.tax_rate, line.quantity)
        subtotal += amounts.subtotal
        vat += amounts.vat
        count += 1
    if count == 0:
        raise InvalidLineItem("An order needs at least one line item")
    return subtotal, vat


def order_subtotal(lines: Iterable[PricedLine]) -> Decimal:
    """Pre-tax subtotal, rounded once. This is the voucher base."""
    subtotal, _ = _exact_sums(lines)
    return round_money(subtotal)


def summarize(lines: Iterable[PricedLine], voucher_discount: Number = ZERO) -> OrderSummary:
    subtotal, vat = _exact_sums(lines)
    subtotal = round_money(subtotal)
    total_vat = round_money(vat)
    discount = round_money(to_decimal(voucher_discount))
    if discount < ZERO or discount > subtotal:
        raise InvalidLineItem(
            f"Voucher discount {discount} must be between 0 and the subtotal {subtotal}"
        )
    final_subtotal = subtotal - discount
    return OrderSummary(
        subtotal=subtotal,
        voucher_discount=discount,
        final_subtotal=final_subtotal,
        total_vat=total_vat,
        total=final_subtotal + total_vat,
    )
