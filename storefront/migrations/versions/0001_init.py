"""catalog, orders, order lines and return requests

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('tax_rate', sa.Numeric(5, 4), nullable=False)
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock', sa.Integer, nullable=False, server_default='0'),
        sa.Column('category_id', sa.Integer, sa.ForeignKey('categories.id'), nullable=True),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative')
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, nullable=False, index=True),
        # Customer snapshot
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('customer_address', sa.String(500), nullable=False),
        sa.Column('customer_type', sa.String(20), nullable=False, server_default='INDIVIDUAL'),
        sa.Column('company_name', sa.String(200), nullable=True),
        sa.Column('tax_code', sa.String(50), nullable=True),
        sa.Column('order_note', sa.Text, nullable=True),
        # Voucher and summary
        sa.Column('voucher_code', sa.String(50), nullable=True),
        sa.Column('voucher_kind', sa.String(30), nullable=True),
        sa.Column('voucher_discount', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('subtotal', sa.Numeric(18, 2), nullable=False),
        sa.Column('total_vat', sa.Numeric(18, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(18, 2), nullable=False),
        # Lifecycle
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING', index=True),
        sa.Column('return_status', sa.String(20), nullable=False, server_default='NONE'),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('paid_at', sa.DateTime, nullable=True),
        sa.Column('completed_at', sa.DateTime, nullable=True),
        sa.Column('cancelled_at', sa.DateTime, nullable=True),
        sa.Column('refunded_at', sa.DateTime, nullable=True)
    )
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False, index=True),
        sa.Column('position', sa.Integer, nullable=False),
        sa.Column('product_id', sa.Integer, nullable=False, index=True),
        # Product snapshot
        sa.Column('product_name', sa.String(200), nullable=False),
        sa.Column('category_name', sa.String(100), nullable=True),
        sa.Column('size', sa.String(30), nullable=True),
        sa.Column('color', sa.String(30), nullable=True),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 4), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False)
    )
    op.create_table(
        'order_return_requests',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('user_id', sa.Integer, nullable=False),
        sa.Column('reason', sa.Text, nullable=False),
        sa.Column('media_urls', sa.JSON, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('order_id', name='uq_order_return_requests_order_id')
    )

def downgrade():
    op.drop_table('order_return_requests')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('categories')
