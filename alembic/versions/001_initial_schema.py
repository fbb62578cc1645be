"""create zset and zscan tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00

Table and column names match databases created by earlier deployments,
so this revision can be stamped onto an existing database instead of run.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'zset',
        sa.Column('zsetid', sa.Integer(), primary_key=True),
        sa.Column('zsetuid', sa.String(255), nullable=False),
        sa.Column('zsetpwh', sa.Text(), nullable=False),  # mode symbol or passcode hash
    )
    op.create_index('ix_zset_zsetuid', 'zset', ['zsetuid'], unique=True)

    op.create_table(
        'zscan',
        sa.Column('zscanid', sa.Integer(), primary_key=True),
        sa.Column('zsetid', sa.Integer(), sa.ForeignKey('zset.zsetid'), nullable=False),
        sa.Column('zscanseq', sa.Integer(), nullable=False),
        sa.Column('zscanisbn', sa.String(13), nullable=False),
        sa.Column('zscantime', sa.Integer(), nullable=False),  # minutes since epoch
        sa.Column('zscancflag', sa.Integer(), nullable=False),
        sa.UniqueConstraint('zsetid', 'zscanseq', name='uq_zscan_set_seq'),
    )


def downgrade():
    op.drop_table('zscan')
    op.drop_index('ix_zset_zsetuid', table_name='zset')
    op.drop_table('zset')
