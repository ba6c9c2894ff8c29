"""initial schema: customers and products

Revision ID: 20251019_0001
Revises:
Create Date: 2025-10-19 00:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20251019_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('customers',
                    sa.Column('customer_id', sa.BigInteger(),
                              primary_key=True, autoincrement=False),
                    sa.Column('name', sa.String(length=100), nullable=False),
                    sa.Column('age', sa.Integer(), nullable=False),
                    sa.Column('address', sa.String(length=255), nullable=False),
                    sa.Column('phone_number', sa.String(length=20)),
                    sa.Column('email', sa.String(length=100)),
                    sa.Column('aadhar_id', sa.String(length=50)),
                    sa.Column('passport_id', sa.String(length=50)),
                    sa.Column('driving_license_id', sa.String(length=50)),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.func.now(), nullable=False),
                    sa.UniqueConstraint('aadhar_id', name='uq_customers_aadhar_id'),
                    sa.UniqueConstraint('passport_id', name='uq_customers_passport_id'),
                    sa.UniqueConstraint('driving_license_id',
                                        name='uq_customers_driving_license_id'),
                    sa.CheckConstraint(
                        'aadhar_id IS NOT NULL OR passport_id IS NOT NULL OR driving_license_id IS NOT NULL',
                        name='check_customer_has_id_document'),
                    sa.CheckConstraint('age > 0', name='check_customer_age_positive'),
                    )

    op.create_table('products',
                    sa.Column('product_id', sa.Integer(),
                              primary_key=True, autoincrement=True),
                    sa.Column('customer_id', sa.BigInteger(), nullable=False),
                    sa.Column('product_name', sa.String(length=100), nullable=False),
                    sa.Column('quantity', sa.Integer(), nullable=False),
                    sa.Column('price', sa.Float(), nullable=False),
                    sa.ForeignKeyConstraint(
                        ['customer_id'], ['customers.customer_id'],
                        ondelete='CASCADE', onupdate='CASCADE',
                        deferrable=True, initially='IMMEDIATE'),
                    sa.CheckConstraint('quantity > 0', name='check_product_quantity_positive'),
                    sa.CheckConstraint('price > 0', name='check_product_price_positive'),
                    )
    op.create_index('idx_products_customer_id', 'products', ['customer_id'])


def downgrade() -> None:
    op.drop_index('idx_products_customer_id', table_name='products')
    op.drop_table('products')
    op.drop_table('customers')
