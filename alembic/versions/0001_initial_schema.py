"""Initial schema: workspaces, locations, boxes and QR codes

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

member_role = sa.Enum('owner', 'admin', 'member', 'read_only', name='member_role')
qr_status = sa.Enum('generated', 'printed', 'assigned', name='qr_status')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create the location hierarchy and box/QR tables."""
    op.create_table(
        'workspaces',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_workspaces'),
    )
    op.create_index('ix_workspaces_owner_id', 'workspaces', ['owner_id'])

    op.create_table(
        'workspace_members',
        sa.Column('workspace_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('role', member_role, nullable=False),
        sa.ForeignKeyConstraint(
            ['workspace_id'], ['workspaces.id'],
            name='fk_workspace_members_workspace_id_workspaces', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('workspace_id', 'user_id', name='pk_workspace_members'),
    )
    op.create_index('ix_workspace_members_user_id', 'workspace_members', ['user_id'])

    op.create_table(
        'locations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('workspace_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('path', sa.String(length=1300), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "length(path) - length(replace(path, '.', '')) < 5",
            name='ck_locations_path_depth',
        ),
        sa.ForeignKeyConstraint(
            ['workspace_id'], ['workspaces.id'],
            name='fk_locations_workspace_id_workspaces', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_locations'),
    )
    op.create_index('ix_locations_workspace_id', 'locations', ['workspace_id'])
    op.create_index('ix_locations_path', 'locations', ['path'])
    op.create_index(
        'uq_locations_workspace_id_path_live',
        'locations',
        ['workspace_id', 'path'],
        unique=True,
        postgresql_where=sa.text('NOT is_deleted'),
        sqlite_where=sa.text('is_deleted = 0'),
    )

    op.create_table(
        'boxes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('workspace_id', sa.Uuid(), nullable=False),
        sa.Column('short_id', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('location_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['workspace_id'], ['workspaces.id'],
            name='fk_boxes_workspace_id_workspaces', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['location_id'], ['locations.id'],
            name='fk_boxes_location_id_locations', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_boxes'),
        sa.UniqueConstraint('short_id', name='uq_boxes_short_id'),
    )
    op.create_index('ix_boxes_workspace_id', 'boxes', ['workspace_id'])
    op.create_index('ix_boxes_name', 'boxes', ['name'])
    op.create_index('ix_boxes_location_id', 'boxes', ['location_id'])

    op.create_table(
        'qr_codes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('workspace_id', sa.Uuid(), nullable=False),
        sa.Column('short_id', sa.String(length=20), nullable=False),
        sa.Column('status', qr_status, nullable=False),
        sa.Column('box_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ['workspace_id'], ['workspaces.id'],
            name='fk_qr_codes_workspace_id_workspaces', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['box_id'], ['boxes.id'],
            name='fk_qr_codes_box_id_boxes', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_qr_codes'),
        sa.UniqueConstraint('box_id', name='uq_qr_codes_box_id'),
    )
    op.create_index('ix_qr_codes_workspace_id', 'qr_codes', ['workspace_id'])
    op.create_index('ix_qr_codes_short_id', 'qr_codes', ['short_id'], unique=True)
    op.create_index('ix_qr_codes_status', 'qr_codes', ['status'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('qr_codes')
    op.drop_table('boxes')
    op.drop_table('locations')
    op.drop_table('workspace_members')
    op.drop_table('workspaces')
    qr_status.drop(op.get_bind(), checkfirst=True)
    member_role.drop(op.get_bind(), checkfirst=True)
