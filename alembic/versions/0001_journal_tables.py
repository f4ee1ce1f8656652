"""Create journal entry and focus stock tables

Revision ID: 0001
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create journal_entries table
    op.create_table('journal_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=False),
        sa.Column('entry_price', sa.Float(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('current_price', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False),
        sa.Column('exit_price', sa.Float(), nullable=True),
        sa.Column('exit_date', sa.Date(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=False),
        sa.Column('is_team_trade', sa.Boolean(), nullable=False),
        sa.Column('pnl', sa.Float(), nullable=False),
        sa.Column('pnl_percentage', sa.Float(), nullable=False),
        sa.Column('report_month', sa.String(length=10), nullable=False),
        sa.Column('report_month_number', sa.Integer(), nullable=False),
        sa.Column('report_year', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_journal_entries_id'), 'journal_entries', ['id'], unique=False)
    op.create_index(op.f('ix_journal_entries_owner_id'), 'journal_entries', ['owner_id'], unique=False)
    op.create_index('ix_journal_entries_owner_status', 'journal_entries', ['owner_id', 'status'], unique=False)
    op.create_index('ix_journal_entries_owner_symbol', 'journal_entries', ['owner_id', 'symbol'], unique=False)
    op.create_index('ix_journal_entries_owner_period', 'journal_entries', ['owner_id', 'report_year', 'report_month_number'], unique=False)

    # Create focus_stocks table
    op.create_table('focus_stocks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('symbol', sa.String(length=10), nullable=False),
        sa.Column('target_price', sa.Float(), nullable=False),
        sa.Column('current_price', sa.Float(), nullable=False),
        sa.Column('reason', sa.String(length=200), nullable=False),
        sa.Column('date_added', sa.DateTime(), nullable=False),
        sa.Column('trade_taken', sa.Boolean(), nullable=False),
        sa.Column('trade_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('potential_return', sa.Float(), nullable=False),
        sa.Column('potential_return_percentage', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_focus_stocks_id'), 'focus_stocks', ['id'], unique=False)
    op.create_index(op.f('ix_focus_stocks_owner_id'), 'focus_stocks', ['owner_id'], unique=False)
    op.create_index('ix_focus_stocks_owner_symbol', 'focus_stocks', ['owner_id', 'symbol'], unique=False)
    op.create_index('ix_focus_stocks_owner_taken', 'focus_stocks', ['owner_id', 'trade_taken'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_focus_stocks_owner_taken', table_name='focus_stocks')
    op.drop_index('ix_focus_stocks_owner_symbol', table_name='focus_stocks')
    op.drop_index(op.f('ix_focus_stocks_owner_id'), table_name='focus_stocks')
    op.drop_index(op.f('ix_focus_stocks_id'), table_name='focus_stocks')
    op.drop_table('focus_stocks')

    op.drop_index('ix_journal_entries_owner_period', table_name='journal_entries')
    op.drop_index('ix_journal_entries_owner_symbol', table_name='journal_entries')
    op.drop_index('ix_journal_entries_owner_status', table_name='journal_entries')
    op.drop_index(op.f('ix_journal_entries_owner_id'), table_name='journal_entries')
    op.drop_index(op.f('ix_journal_entries_id'), table_name='journal_entries')
    op.drop_table('journal_entries')
