"""create_store_tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


order_status = sa.Enum(
    'pending', 'processing', 'delivered', 'cancelled',
    name='store_order_status_enum',
)
delivery_type = sa.Enum(
    'local', 'express', 'overseas', name='store_delivery_type_enum'
)
payment_method = sa.Enum('online', 'offline', name='store_payment_method_enum')
movement_type = sa.Enum(
    'sale', 'adjustment', name='store_inventory_movement_type_enum'
)


def upgrade() -> None:
    """Upgrade schema - Create products, orders, order items, inventory movements and delivery settings."""

    # Create products table
    op.create_table(
        'store_products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('stock', sa.Integer(), server_default='0', nullable=False),
        sa.Column('draft', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('price >= 0', name='non_negative_price'),
        sa.CheckConstraint('stock >= 0', name='non_negative_stock'),
        sa.PrimaryKeyConstraint('id')
    )

    # Create orders table
    op.create_table(
        'store_orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('postal_code', sa.String(length=30), nullable=False),
        sa.Column('street_address', sa.String(length=255), nullable=False),
        sa.Column('country', sa.String(length=100), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('delivery_type', delivery_type, nullable=False),
        sa.Column('delivery_cost', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('status', order_status, nullable=False),
        sa.Column('paid', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('gateway_session_id', sa.String(length=255), nullable=True),
        sa.Column('payment_proof_url', sa.Text(), nullable=True),
        sa.Column('payment_reference', sa.String(length=50), nullable=True),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('total >= 0', name='non_negative_total'),
        sa.CheckConstraint(
            "NOT paid OR status IN ('processing', 'delivered')",
            name='paid_implies_fulfilment',
        ),
        sa.CheckConstraint(
            "rejection_reason IS NULL OR status = 'cancelled'",
            name='rejection_only_when_cancelled',
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_orders_user_id', 'store_orders', ['user_id'])
    op.create_index('ix_store_orders_email', 'store_orders', ['email'])
    op.create_index('ix_store_orders_status', 'store_orders', ['status'])
    op.create_index(
        'ix_store_orders_gateway_session_id', 'store_orders', ['gateway_session_id']
    )
    op.create_index(
        'ix_store_orders_payment_reference', 'store_orders', ['payment_reference']
    )
    op.create_index(
        'ix_store_orders_status_created_at', 'store_orders', ['status', 'created_at']
    )

    # Create order items table
    op.create_table(
        'store_order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_description', sa.Text(), nullable=True),
        sa.Column('product_images', sa.JSON(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('line_total', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('quantity >= 1', name='positive_quantity'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['store_orders.id'], ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['store_products.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_store_order_items_order_id', 'store_order_items', ['order_id']
    )

    # Create inventory movements table
    op.create_table(
        'store_inventory_movements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('movement_type', movement_type, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('stock_before', sa.Integer(), nullable=False),
        sa.Column('stock_after', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=True),
        sa.Column('order_item_id', sa.Uuid(), nullable=True),
        sa.Column('performed_by', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['product_id'], ['store_products.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_item_id', name='unique_sale_per_order_item')
    )
    op.create_index(
        'ix_store_inventory_movements_product_id',
        'store_inventory_movements',
        ['product_id'],
    )
    op.create_index(
        'ix_store_inventory_movements_order_id',
        'store_inventory_movements',
        ['order_id'],
    )

    # Create delivery settings table
    op.create_table(
        'store_delivery_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('delivery_types', sa.JSON(), nullable=False),
        sa.Column('free_delivery_threshold', sa.Numeric(12, 2), nullable=False),
        sa.Column('bank_account_details', sa.Text(), server_default='', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    """Downgrade schema - Drop store tables."""
    op.drop_table('store_delivery_settings')
    op.drop_index(
        'ix_store_inventory_movements_order_id',
        table_name='store_inventory_movements',
    )
    op.drop_index(
        'ix_store_inventory_movements_product_id',
        table_name='store_inventory_movements',
    )
    op.drop_table('store_inventory_movements')
    op.drop_index('ix_store_order_items_order_id', table_name='store_order_items')
    op.drop_table('store_order_items')
    op.drop_index('ix_store_orders_status_created_at', table_name='store_orders')
    op.drop_index('ix_store_orders_payment_reference', table_name='store_orders')
    op.drop_index('ix_store_orders_gateway_session_id', table_name='store_orders')
    op.drop_index('ix_store_orders_status', table_name='store_orders')
    op.drop_index('ix_store_orders_email', table_name='store_orders')
    op.drop_index('ix_store_orders_user_id', table_name='store_orders')
    op.drop_table('store_orders')
    op.drop_table('store_products')

    bind = op.get_bind()
    for enum_type in (movement_type, payment_method, order_status, delivery_type):
        enum_type.drop(bind, checkfirst=True)
