"""initial weighbridge schema

Revision ID: c3f1a9d2e7b4
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the site database:
- customers: hauliers / account holders
- weigh_tickets: gross/tare/net transactions with lifecycle and backup state
- local_users, sessions: offline authentication
- app_settings: key/value store (device_id)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c3f1a9d2e7b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customers_name', 'customers', ['name'])

    # ============================================================================
    # weigh_tickets: derived fields (net, status, weigh-in/out) are written by
    # the lifecycle engine; version_id backs optimistic concurrency on update
    # ============================================================================
    op.create_table(
        'weigh_tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ticket_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('vehicle_id', sa.String(length=64), nullable=True),
        sa.Column('material', sa.String(length=128), nullable=False),
        sa.Column('gross_weight', sa.Float(), nullable=True),
        sa.Column('tare_weight', sa.Float(), nullable=True),
        sa.Column('net_weight', sa.Float(), nullable=True),
        sa.Column('unit', sa.String(length=16), nullable=False, server_default='kg'),
        sa.Column('weigh_in_time', sa.DateTime(), nullable=True),
        sa.Column('weigh_out_time', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('backup_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint("status IN ('pending', 'completed', 'cancelled')",
                           name='ck_weigh_tickets_status'),
        sa.CheckConstraint("backup_status IN ('pending', 'completed', 'failed')",
                           name='ck_weigh_tickets_backup_status'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('ticket_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_weigh_tickets_customer_id', 'weigh_tickets', ['customer_id'])
    op.create_index('ix_weigh_tickets_created_at', 'weigh_tickets', ['created_at'])
    op.create_index('ix_weigh_tickets_backup', 'weigh_tickets', ['status', 'backup_status'])

    op.create_table(
        'local_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='operator'),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint("role IN ('admin', 'operator')", name='ck_local_users_role'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'sessions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'])

    op.create_table(
        'app_settings',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade():
    op.drop_table('app_settings')
    op.drop_index('ix_sessions_user_id', table_name='sessions')
    op.drop_table('sessions')
    op.drop_table('local_users')
    op.drop_index('ix_weigh_tickets_backup', table_name='weigh_tickets')
    op.drop_index('ix_weigh_tickets_created_at', table_name='weigh_tickets')
    op.drop_index('ix_weigh_tickets_customer_id', table_name='weigh_tickets')
    op.drop_table('weigh_tickets')
    op.drop_index('ix_customers_name', table_name='customers')
    op.drop_table('customers')
