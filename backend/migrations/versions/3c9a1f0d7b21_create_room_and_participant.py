"""create room and participant tables

Revision ID: 3c9a1f0d7b21
Revises:
Create Date: 2026-10-16 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9a1f0d7b21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'room',
        sa.Column('room_code', sa.String(length=16), nullable=False),
        sa.Column('host_id', sa.String(length=128), nullable=False),
        sa.Column('topic', sa.Text(), nullable=False),
        sa.Column('revealed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('room_code'),
    )
    with op.batch_alter_table('room') as batch_op:
        batch_op.create_index(batch_op.f('ix_room_host_id'), ['host_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_room_expires_at'), ['expires_at'], unique=False)

    op.create_table(
        'participant',
        sa.Column('room_code', sa.String(length=16), nullable=False),
        sa.Column('member_id', sa.String(length=128), nullable=False),
        sa.Column('display_name', sa.String(length=64), nullable=False),
        sa.Column('vote', sa.JSON(none_as_null=True), nullable=True),
        sa.Column('joined_at', sa.Integer(), nullable=False),
        sa.Column('voted_at', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('room_code', 'member_id'),
    )


def downgrade():
    op.drop_table('participant')
    with op.batch_alter_table('room') as batch_op:
        batch_op.drop_index(batch_op.f('ix_room_expires_at'))
        batch_op.drop_index(batch_op.f('ix_room_host_id'))
    op.drop_table('room')
