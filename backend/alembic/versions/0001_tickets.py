"""tickets table

Revision ID: 0001_tickets
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_tickets'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('tickets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fullname', sa.String(length=255), nullable=False),
        sa.Column('telephone', sa.String(length=64), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='incomplete'),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.CheckConstraint("status IN ('incomplete', 'completed')", name='ck_tickets_status'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_tickets_telephone', 'tickets', ['telephone'], unique=True)

def downgrade():
    op.drop_index('ix_tickets_telephone', table_name='tickets')
    op.drop_table('tickets')
