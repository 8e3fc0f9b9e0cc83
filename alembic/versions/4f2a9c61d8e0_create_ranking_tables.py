"""create_ranking_tables

Revision ID: 4f2a9c61d8e0
Revises:
Create Date: 2026-10-19 09:12:40.318204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2a9c61d8e0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('project_class',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),

        # Target and competitors
        sa.Column('domain', sa.String(255), nullable=False),
        sa.Column('competitor_domains', sa.JSON(), nullable=True),

        # SERP parameters
        sa.Column('country_id', sa.String(20), nullable=False),
        sa.Column('language_code', sa.String(10), nullable=False),
        sa.Column('device', sa.String(10), nullable=False, server_default='desktop'),
        sa.Column('top_results', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('location_id', sa.String(20), nullable=True),

        # Schedule
        sa.Column('schedule', sa.String(10), nullable=True),
        sa.Column('schedule_time', sa.String(5), nullable=True, server_default='08:00'),
        sa.Column('last_checked_at', sa.DateTime(), nullable=True),

        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_project_class_user_id', 'project_class', ['user_id'])
    op.create_index('idx_project_class_schedule', 'project_class', ['schedule'])

    op.create_table('project_keyword',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('class_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('keyword', sa.String(255), nullable=False),

        # Latest check
        sa.Column('ranking_position', sa.Integer(), nullable=True),
        sa.Column('first_position', sa.Integer(), nullable=True),
        sa.Column('best_position', sa.Integer(), nullable=True),
        sa.Column('previous_position', sa.Integer(), nullable=True),
        sa.Column('found_url', sa.Text(), nullable=True),
        sa.Column('competitor_rankings', sa.JSON(), nullable=True),
        sa.Column('serp_results', sa.JSON(), nullable=True),
        sa.Column('last_checked_at', sa.DateTime(), nullable=True),

        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['class_id'], ['project_class.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('class_id', 'keyword', name='uq_project_keyword_class_keyword')
    )
    op.create_index('ix_project_keyword_class_id', 'project_keyword', ['class_id'])
    op.create_index('ix_project_keyword_user_id', 'project_keyword', ['user_id'])

    op.create_table('keyword_ranking_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('keyword_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('ranking_position', sa.Integer(), nullable=True),
        sa.Column('found_url', sa.Text(), nullable=True),
        sa.Column('competitor_rankings', sa.JSON(), nullable=True),
        sa.Column('checked_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['keyword_id'], ['project_keyword.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_ranking_history_keyword_checked', 'keyword_ranking_history', ['keyword_id', 'checked_at'])
    op.create_index('ix_keyword_ranking_history_user_id', 'keyword_ranking_history', ['user_id'])

    op.create_table('ranking_check_queue',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('class_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('keyword_ids', sa.JSON(), nullable=True),

        # Progress
        sa.Column('total_keywords', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('processed_keywords', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('claimed_keywords', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('claimed_at', sa.DateTime(), nullable=True),
        sa.Column('claim_token', sa.String(36), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('active_class_id', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),

        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('active_class_id')
    )
    op.create_index('ix_ranking_check_queue_class_id', 'ranking_check_queue', ['class_id'])
    op.create_index('ix_ranking_check_queue_user_id', 'ranking_check_queue', ['user_id'])
    op.create_index('idx_ranking_queue_status_created', 'ranking_check_queue', ['status', 'created_at'])

    op.create_table('ranking_checks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('keyword', sa.String(255), nullable=False),
        sa.Column('target_url', sa.Text(), nullable=True),

        # SERP parameters
        sa.Column('country_id', sa.String(20), nullable=False),
        sa.Column('country_name', sa.String(100), nullable=True),
        sa.Column('location_id', sa.String(20), nullable=True),
        sa.Column('location_name', sa.String(255), nullable=True),
        sa.Column('language_code', sa.String(10), nullable=False),
        sa.Column('language_name', sa.String(100), nullable=True),
        sa.Column('device', sa.String(10), nullable=False, server_default='desktop'),
        sa.Column('top_results', sa.Integer(), nullable=False, server_default='100'),

        # Outcome
        sa.Column('ranking_position', sa.Integer(), nullable=True),
        sa.Column('found_url', sa.Text(), nullable=True),
        sa.Column('serp_results', sa.JSON(), nullable=True),

        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_ranking_checks_user_created', 'ranking_checks', ['user_id', 'created_at'])

    op.create_table('user_credit',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('balance', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_purchased', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_credit_user_id', 'user_credit', ['user_id'], unique=True)

    op.create_table('credit_transaction',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('reference_id', sa.String(100), nullable=True),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference_id')
    )
    op.create_index('ix_credit_transaction_user_id', 'credit_transaction', ['user_id'])

    op.create_table('billing_order',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('order_invoice_number', sa.String(40), nullable=False),
        sa.Column('package_id', sa.String(20), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('sepay_order_id', sa.String(100), nullable=True),
        sa.Column('sepay_transaction_id', sa.String(100), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_billing_order_user_id', 'billing_order', ['user_id'])
    op.create_index('ix_billing_order_order_invoice_number', 'billing_order', ['order_invoice_number'], unique=True)
    op.create_index('ix_billing_order_sepay_transaction_id', 'billing_order', ['sepay_transaction_id'])

    op.create_table('admin_action_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('admin_id', sa.String(36), nullable=False),
        sa.Column('action_type', sa.String(50), nullable=False),
        sa.Column('target_user_id', sa.String(36), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_admin_action_log_admin_id', 'admin_action_log', ['admin_id'])
    op.create_index('ix_admin_action_log_target_user_id', 'admin_action_log', ['target_user_id'])


def downgrade():
    op.drop_table('admin_action_log')
    op.drop_table('billing_order')
    op.drop_table('credit_transaction')
    op.drop_table('user_credit')
    op.drop_table('ranking_checks')
    op.drop_table('ranking_check_queue')
    op.drop_table('keyword_ranking_history')
    op.drop_table('project_keyword')
    op.drop_table('project_class')
