"""Create webhook and API key tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create webhook, delivery log, API key and usage tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # Webhook endpoints
    op.create_table(
        'webhooks',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('url', sa.Text, nullable=False),
        sa.Column('secret', sa.String(128), nullable=False),
        sa.Column('events', postgresql.JSONB, nullable=False, server_default=sa.text("'[\"newsletter.sent\"]'::jsonb")),
        sa.Column('enabled', sa.Boolean, nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.CheckConstraint("url LIKE 'https://%'", name='webhook_url_https'),
    )
    op.create_index('ix_webhooks_tenant_id', 'webhooks', ['tenant_id'])
    op.create_index('idx_webhooks_tenant_enabled', 'webhooks', ['tenant_id', 'enabled'])

    # Delivery attempts (no FK: history survives endpoint deletion)
    op.create_table(
        'webhook_deliveries',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('webhook_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_type', sa.String(64), nullable=False),
        sa.Column('payload', postgresql.JSONB, nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('attempt', sa.Integer, nullable=False),
        sa.Column('response_code', sa.Integer, nullable=False, server_default='0'),
        sa.Column('error', sa.Text, nullable=True),
        sa.Column('attempted_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.CheckConstraint("status IN ('delivered', 'failed')", name='webhook_delivery_status_valid'),
        sa.CheckConstraint('attempt >= 1', name='webhook_delivery_attempt_positive'),
        sa.CheckConstraint(
            "status <> 'delivered' OR (response_code >= 200 AND response_code < 300)",
            name='webhook_delivery_delivered_is_2xx',
        ),
    )
    op.create_index('idx_webhook_deliveries_webhook_time', 'webhook_deliveries', ['webhook_id', 'attempted_at'])
    op.create_index('idx_webhook_deliveries_tenant', 'webhook_deliveries', ['tenant_id'])

    # API keys
    op.create_table(
        'api_keys',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(100), nullable=False, server_default='API Key'),
        sa.Column('key_prefix', sa.String(16), nullable=False),
        sa.Column('key_hash', sa.String(64), nullable=False, unique=True),
        sa.Column('permissions', postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('rate_limit', sa.Integer, nullable=False, server_default='1000'),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.CheckConstraint('rate_limit >= 1', name='api_key_rate_limit_positive'),
    )
    op.create_index('ix_api_keys_tenant_id', 'api_keys', ['tenant_id'])

    # Usage ledger
    op.create_table(
        'api_key_usage',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('api_key_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('api_keys.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('idx_api_key_usage_key_time', 'api_key_usage', ['api_key_id', 'used_at'])


def downgrade() -> None:
    """Drop webhook and API key tables."""
    op.drop_table('api_key_usage')
    op.drop_table('api_keys')
    op.drop_table('webhook_deliveries')
    op.drop_table('webhooks')
