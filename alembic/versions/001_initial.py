# alembic/versions/001_initial.py

"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create portfolio table
    op.create_table('portfolio',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('holdings', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Create stock_data table (latest quote per ticker)
    op.create_table('stock_data',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('ticker', sa.String(length=40), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('current_price', sa.Float(), nullable=False),
        sa.Column('daily_change', sa.Float(), nullable=False),
        sa.Column('daily_change_percent', sa.Float(), nullable=False),
        sa.Column('moving_average_50', sa.Float(), nullable=True),
        sa.Column('sector', sa.String(length=100), nullable=True),
        sa.Column('last_updated', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_stock_data_ticker'), 'stock_data', ['ticker'], unique=True)

    # Create portfolio_analysis table
    op.create_table('portfolio_analysis',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('portfolio_id', sa.String(length=36), nullable=False),
        sa.Column('advice', sa.JSON(), nullable=False),
        sa.Column('total_value', sa.Float(), nullable=False),
        sa.Column('risk_level', sa.String(length=20), nullable=True),
        sa.Column('diversification_score', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_portfolio_analysis_portfolio_id'), 'portfolio_analysis', ['portfolio_id'], unique=False)
    op.create_index('ix_portfolio_analysis_latest', 'portfolio_analysis', ['portfolio_id', 'created_at'], unique=False)

    # Create usage_tracking table (one row per day)
    op.create_table('usage_tracking',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('portfolio_analyses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('credits_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('credits_remaining', sa.Integer(), nullable=False, server_default='10'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_usage_tracking_date'), 'usage_tracking', ['date'], unique=True)


def downgrade():
    op.drop_index(op.f('ix_usage_tracking_date'), table_name='usage_tracking')
    op.drop_table('usage_tracking')
    op.drop_index('ix_portfolio_analysis_latest', table_name='portfolio_analysis')
    op.drop_index(op.f('ix_portfolio_analysis_portfolio_id'), table_name='portfolio_analysis')
    op.drop_table('portfolio_analysis')
    op.drop_index(op.f('ix_stock_data_ticker'), table_name='stock_data')
    op.drop_table('stock_data')
    op.drop_table('portfolio')
