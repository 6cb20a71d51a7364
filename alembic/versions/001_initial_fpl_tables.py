"""Tablas iniciales de FPL: entry_infos, entry_event_picks, entry_event_transfers

Revision ID: 001_fpl_tables
Revises: 
Create Date: 2026-10-18

Cambios:
- entry_infos: una fila por entry (clave entry_id)
- entry_event_picks: unico por (entry_id, event_id)
- entry_event_transfers: unico por (entry_id, event_id, element_in_id, element_out_id, transfer_time)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001_fpl_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'entry_infos',
        sa.Column('entry_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('entry_name', sa.String(length=255), nullable=False),
        sa.Column('player_name', sa.String(length=255), nullable=False),
        sa.Column('region', sa.String(length=255), nullable=True),
        sa.Column('started_event', sa.Integer(), nullable=True),
        sa.Column('overall_points', sa.Integer(), nullable=True),
        sa.Column('overall_rank', sa.Integer(), nullable=True),
        sa.Column('bank', sa.Integer(), nullable=True),
        sa.Column('team_value', sa.Integer(), nullable=True),
        sa.Column('total_transfers', sa.Integer(), nullable=True),
        sa.Column('last_entry_name', sa.String(length=255), nullable=True),
        sa.Column('last_overall_points', sa.Integer(), nullable=True),
        sa.Column('last_overall_rank', sa.Integer(), nullable=True),
        sa.Column('last_team_value', sa.Integer(), nullable=True),
        sa.Column('used_entry_names', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('entry_id'),
    )

    op.create_table(
        'entry_event_picks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entry_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('chip', sa.String(length=50), nullable=True),
        sa.Column('picks', sa.JSON(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=True),
        sa.Column('transfers', sa.Integer(), nullable=False),
        sa.Column('transfers_cost', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entry_id', 'event_id', name='uq_entry_event_picks_entry_event'),
    )
    op.create_index('ix_entry_event_picks_entry_id', 'entry_event_picks', ['entry_id'])
    op.create_index('ix_entry_event_picks_event_id', 'entry_event_picks', ['event_id'])

    op.create_table(
        'entry_event_transfers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entry_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('element_in_id', sa.Integer(), nullable=False),
        sa.Column('element_in_cost', sa.Integer(), nullable=False),
        sa.Column('element_out_id', sa.Integer(), nullable=False),
        sa.Column('element_out_cost', sa.Integer(), nullable=False),
        sa.Column('transfer_time', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'entry_id', 'event_id', 'element_in_id', 'element_out_id', 'transfer_time',
            name='uq_entry_event_transfers_natural_key',
        ),
    )
    op.create_index('ix_entry_event_transfers_entry_id', 'entry_event_transfers', ['entry_id'])
    op.create_index('ix_entry_event_transfers_event_id', 'entry_event_transfers', ['event_id'])


def downgrade() -> None:
    op.drop_index('ix_entry_event_transfers_event_id', table_name='entry_event_transfers')
    op.drop_index('ix_entry_event_transfers_entry_id', table_name='entry_event_transfers')
    op.drop_table('entry_event_transfers')

    op.drop_index('ix_entry_event_picks_event_id', table_name='entry_event_picks')
    op.drop_index('ix_entry_event_picks_entry_id', table_name='entry_event_picks')
    op.drop_table('entry_event_picks')

    op.drop_table('entry_infos')
