"""Mobile services: wallet, bank transfer, airtime and bill payment transactions

Revision ID: 20261015_mobile_services
Revises: 20261001_initial
Create Date: 2026-10-15
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261015_mobile_services'
down_revision = '20261001_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('mobile_services',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('service_type', sa.String(length=32), nullable=False),
        sa.Column('load_provider', sa.String(length=16), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('reference_id', sa.String(length=128), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('commission_rate', sa.Numeric(precision=8, scale=2), nullable=False),
        sa.Column('commission', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('discount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('net_commission', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='COMPLETED'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], name='fk_mobile_services_shop_id_shops'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_mobile_services_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_mobile_services'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('mobile_services', schema=None) as batch_op:
        batch_op.create_index('ix_mobile_services_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_mobile_services_service_type', ['service_type'], unique=False)
        batch_op.create_index('ix_mobile_services_status', ['status'], unique=False)
        batch_op.create_index('ix_mobile_services_shop_date', ['shop_id', 'transaction_date'], unique=False)


def downgrade():
    op.drop_table('mobile_services')
