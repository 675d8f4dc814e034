"""Catalog and inventory gateways backed by the products/categories tables.

Both gateways run inside the caller's session so that stock changes commit
or roll back together with the order rows they belong to.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.domain.errors import ConflictError, OutOfStock, ProductNotFound
from storefront.domain.models import Product

# products.stock is a 32-bit INTEGER
MAX_STOCK = 2**31 - 1

@dataclass(frozen=True)
class CatalogEntry:
    product_id: int
    name: str
    price: Decimal
    tax_rate: Decimal
    category_name: Optional[str]


class CatalogGateway:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> CatalogEntry:
        product = self.db.execute(
            select(Product).where(Product.id == product_id)
        ).unique().scalar_one_or_none()
        if product is None:
            raise ProductNotFound(product_id)
        category = product.category
        return CatalogEntry(
            product_id=product.id,
            name=product.name,
            price=product.price,
            tax_rate=category.tax_rate if category is not None else Decimal("0"),
            category_name=category.name if category is not None else None,
        )


def _aggregate(quantities: Iterable[tuple]) -> Dict[int, int]:
    totals: Dict[int, int] = {}
    for product_id, quantity in quantities:
        totals[product_id] = totals.get(product_id, 0) + quantity
    return totals


class InventoryGateway:
    """Conditional stock updates; no read-then-write window."""

    def __init__(self, db: Session):
        self.db = db

    def decrement_if_available(self, product_id: int, quantity: int) -> None:
        if quantity > MAX_STOCK:
            # More than any stock value can hold
            raise OutOfStock(product_id, quantity)
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise OutOfStock(product_id, quantity)

    def increment(self, product_id: int, quantity: int) -> None:
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                f"Failed to restore stock for product {product_id}",
                code="stock_restore_failed",
            )

    def reserve(self, quantities: Iterable[tuple]) -> None:
        """Decrement every (product_id, qty), lowest product id first."""
        for product_id, quantity in sorted(_aggregate(quantities).items()):
            self.decrement_if_available(product_id, quantity)

    def restore(self, quantities: Iterable[tuple]) -> None:
        for product_id, quantity in sorted(_aggregate(quantities).items()):
            self.increment(product_id, quantity)
