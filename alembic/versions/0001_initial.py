"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('carpools',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_name', sa.String(length=255), nullable=False),
        sa.Column('destination', sa.String(length=255), nullable=False),
        sa.Column('departure_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('available_seats', sa.Integer(), nullable=False),
        sa.Column('seat_capacity', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('seat_capacity BETWEEN 1 AND 8', name='ck_carpools_seat_capacity'),
        sa.CheckConstraint('available_seats >= 0 AND available_seats <= seat_capacity', name='ck_carpools_available_seats'),
    )
    op.create_index('ix_carpools_departure_id', 'carpools', ['departure_time', 'id'], unique=False)


def downgrade():
    op.drop_index('ix_carpools_departure_id', table_name='carpools')
    op.drop_table('carpools')
