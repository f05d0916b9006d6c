"""add_payment_lock_tables

Revision ID: 3f1c2a7d9b41
Revises:
Create Date: 2026-01-12 09:30:12.418211

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a7d9b41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'payment_locks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('buyer_id', sa.String(length=100), nullable=False, comment='买家游戏ID'),
        sa.Column('product_id', sa.Integer(), nullable=False, comment='商品ID'),
        sa.Column('product_name', sa.String(length=255), nullable=False, comment='商品名称（下单时快照）'),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False, comment='待付金额'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active', comment='锁状态: active/expired/completed'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, comment='过期时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_locks_id', 'payment_locks', ['id'])
    op.create_index('ix_payment_locks_buyer_id', 'payment_locks', ['buyer_id'])
    op.create_index('ix_payment_locks_status', 'payment_locks', ['status'])
    op.create_index('ix_payment_locks_created_at', 'payment_locks', ['created_at'])
    op.create_index('ix_payment_locks_amount_status', 'payment_locks', ['amount', 'status'])
    op.create_index('ix_payment_locks_status_expires', 'payment_locks', ['status', 'expires_at'])
    # 同一金额同一时刻最多一个 active 锁
    op.create_index(
        'uq_payment_locks_active_amount',
        'payment_locks',
        ['amount'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'payment_confirmations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('channel', sa.String(length=20), nullable=False, comment='来源渠道: sms/razorpay'),
        sa.Column('sender', sa.String(length=100), nullable=True, comment='短信发送方等'),
        sa.Column('raw_payload', sa.Text(), nullable=False, comment='原始报文'),
        sa.Column('parsed_amount', sa.Numeric(precision=10, scale=2), nullable=True, comment='解析出的金额'),
        sa.Column('provider_ref', sa.String(length=200), nullable=True, comment='UPI参考号/网关支付ID'),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='unprocessed', comment='处理状态'),
        sa.Column('matched_lock_id', sa.Integer(), nullable=True, comment='匹配到的锁ID'),
        sa.Column('matched_buyer_id', sa.String(length=100), nullable=True, comment='匹配到的买家游戏ID'),
        sa.Column('error', sa.Text(), nullable=True, comment='最近一次处理失败原因'),
        sa.Column('received_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='接收时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_confirmations_id', 'payment_confirmations', ['id'])
    op.create_index('ix_payment_confirmations_channel', 'payment_confirmations', ['channel'])
    op.create_index('ix_payment_confirmations_provider_ref', 'payment_confirmations', ['provider_ref'])
    op.create_index('ix_payment_confirmations_status', 'payment_confirmations', ['status'])
    op.create_index('ix_payment_confirmations_matched_lock_id', 'payment_confirmations', ['matched_lock_id'])
    op.create_index('ix_payment_confirmations_received_at', 'payment_confirmations', ['received_at'])
    op.create_index('ix_payment_confirmations_status_received', 'payment_confirmations', ['status', 'received_at'])

    op.create_table(
        'buyers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('gaming_id', sa.String(length=100), nullable=False, comment='游戏ID'),
        sa.Column('coins', sa.Integer(), nullable=False, server_default='0', comment='金币余额'),
        sa.Column('referred_by_code', sa.String(length=100), nullable=True, comment='注册时使用的推荐码'),
        sa.Column('fcm_token', sa.String(length=500), nullable=True, comment='推送令牌'),
        sa.Column('is_banned', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('ban_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_buyers_id', 'buyers', ['id'])
    op.create_index('ix_buyers_gaming_id', 'buyers', ['gaming_id'], unique=True)

    op.create_table(
        'legacy_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_code', sa.String(length=100), nullable=False),
        sa.Column('wallet_balance', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_legacy_users_id', 'legacy_users', ['id'])
    op.create_index('ix_legacy_users_referral_code', 'legacy_users', ['referral_code'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False, comment='标价'),
        sa.Column('purchase_price', sa.Numeric(precision=10, scale=2), nullable=True, comment='金币商品采购价'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0', comment='金币商品包含的金币数'),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('coins_applicable', sa.Integer(), nullable=False, server_default='0', comment='最多可抵扣金币'),
        sa.Column('is_coin_product', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_vanished', sa.Boolean(), nullable=False, server_default='false'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_id', 'products', ['id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('buyer_pk', sa.Integer(), nullable=True, comment='买家主键'),
        sa.Column('buyer_id', sa.String(length=100), nullable=False, comment='买家游戏ID'),
        sa.Column('product_id', sa.Integer(), nullable=False, comment='商品ID'),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_price', sa.Numeric(precision=10, scale=2), nullable=False, comment='商品标价'),
        sa.Column('product_image_url', sa.String(length=500), nullable=True),
        sa.Column('payment_method', sa.String(length=30), nullable=False, comment='UPI-Auto/UPI-Manual'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='Processing/Completed/Failed'),
        sa.Column('utr', sa.String(length=200), nullable=True, comment='付款参考号'),
        sa.Column('referral_code', sa.String(length=100), nullable=True),
        sa.Column('coins_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('final_price', sa.Numeric(precision=10, scale=2), nullable=False, comment='实付金额'),
        sa.Column('is_coin_product', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('coins_at_time_of_purchase', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lock_id', sa.Integer(), nullable=False, comment='来源支付锁ID'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('lock_id', name='uq_orders_lock_id'),
    )
    op.create_index('ix_orders_id', 'orders', ['id'])
    op.create_index('ix_orders_buyer_pk', 'orders', ['buyer_pk'])
    op.create_index('ix_orders_buyer_id', 'orders', ['buyer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('buyer_id', sa.String(length=100), nullable=False, comment='买家游戏ID'),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_buyer_id', 'notifications', ['buyer_id'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('legacy_users')
    op.drop_table('buyers')
    op.drop_table('payment_confirmations')
    op.drop_index('uq_payment_locks_active_amount', table_name='payment_locks')
    op.drop_table('payment_locks')
