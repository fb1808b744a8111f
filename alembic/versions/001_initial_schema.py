"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2024-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create calls table
    op.create_table(
        'calls',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('call_sid', sa.String(), nullable=False),
        sa.Column('from_number', sa.String(), nullable=False),
        sa.Column('to_number', sa.String(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_calls_id'), 'calls', ['id'], unique=False)
    op.create_index(op.f('ix_calls_call_sid'), 'calls', ['call_sid'], unique=True)

    # Create call_scripts table
    op.create_table(
        'call_scripts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('caller_id', sa.String(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_call_scripts_id'), 'call_scripts', ['id'], unique=False)
    op.create_index(op.f('ix_call_scripts_caller_id'), 'call_scripts', ['caller_id'], unique=True)


def downgrade() -> None:
    op.drop_index(op.f('ix_call_scripts_caller_id'), table_name='call_scripts')
    op.drop_index(op.f('ix_call_scripts_id'), table_name='call_scripts')
    op.drop_table('call_scripts')
    op.drop_index(op.f('ix_calls_call_sid'), table_name='calls')
    op.drop_index(op.f('ix_calls_id'), table_name='calls')
    op.drop_table('calls')
