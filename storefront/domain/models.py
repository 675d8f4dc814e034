from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, Numeric, DateTime, Integer, Text, JSON, UniqueConstraint, CheckConstraint
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .lifecycle import OrderStatus, ReturnStatus
from .pricing import LineAmounts, line_amounts

class Base(DeclarativeBase):
    pass

class Category(Base):
    __tablename__ = "categories"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)
    # Decimal fraction, e.g. 0.1000 for 10% VAT
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4))

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    stock: Mapped[int] = mapped_column(Integer, default=0)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"), nullable=True)
    category: Mapped[Optional[Category]] = relationship("Category", lazy="joined")

class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(primary_key=True)
    # Owner of the order (user service id, no FK)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    # Customer snapshot data (captured at checkout)
    customer_name: Mapped[str] = mapped_column(String(200))
    customer_email: Mapped[str] = mapped_column(String(255))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    customer_address: Mapped[str] = mapped_column(String(500))
    customer_type: Mapped[str] = mapped_column(String(20), default="INDIVIDUAL")
    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tax_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    order_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Voucher application, frozen at checkout
    voucher_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    voucher_kind: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    voucher_discount: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    # Summary, computed once from the line snapshots
    subtotal: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    total_vat: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value, index=True)
    return_status: Mapped[str] = mapped_column(String(20), default=ReturnStatus.NONE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    refunded_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.position"
    )
    return_request: Mapped[Optional["OrderReturnRequest"]] = relationship(
        "OrderReturnRequest", back_populates="order", uselist=False
    )

    @property
    def final_subtotal(self) -> Decimal:
        return self.subtotal - self.voucher_discount

class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    # Reference only, the catalog may change or drop the product later
    product_id: Mapped[int] = mapped_column(Integer, index=True)
    # Product snapshot data (captured at checkout)
    product_name: Mapped[str] = mapped_column(String(200))
    category_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    size: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4))
    quantity: Mapped[int] = mapped_column(Integer)
    order: Mapped[Order] = relationship("Order", back_populates="items")

    @property
    def amounts(self) -> LineAmounts:
        return line_amounts(self.unit_price, self.tax_rate, self.quantity)

class OrderReturnRequest(Base):
    __tablename__ = "order_return_requests"
    __table_args__ = (UniqueConstraint("order_id", name="uq_order_return_requests_order_id"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"))
    user_id: Mapped[int] = mapped_column(Integer)
    reason: Mapped[str] = mapped_column(Text)
    # Opaque references written by the media storage service
    media_urls: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime)
    order: Mapped[Order] = relationship("Order", back_populates="return_request")
