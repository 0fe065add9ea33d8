"""Initial schema: users, rooms, archetypes, plants, events

Revision ID: 001
Create Date: 2026-10-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Rooms (one graveyard per user)
    op.create_table(
        'room',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('is_graveyard', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_room_id', 'room', ['id'])
    op.create_index('ix_room_user_id', 'room', ['user_id'])

    # Archetypes (static reference data)
    op.create_table(
        'plant_archetype',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('default_interval', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    # Plants with derived schedule state
    op.create_table(
        'plant',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('archetype_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('water_amount', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('current_interval', sa.Float(), nullable=False),
        sa.Column('last_watered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('next_check_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['room.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['archetype_id'], ['plant_archetype.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_plant_id', 'plant', ['id'])
    op.create_index('ix_plant_room_id', 'plant', ['room_id'])
    op.create_index('ix_plant_archetype_id', 'plant', ['archetype_id'])
    op.create_index('ix_plant_next_check_at', 'plant', ['next_check_at'])

    # Append-only event log
    op.create_table(
        'event',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('type', sa.String(6), nullable=False),
        sa.Column('is_anomaly', sa.Boolean(), nullable=False),
        sa.Column('soil_condition', sa.String(6), nullable=True),
        sa.Column('snooze_extra_days', sa.Integer(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['plant_id'], ['plant.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_id', 'event', ['id'])
    op.create_index('ix_event_plant_timestamp', 'event', ['plant_id', 'timestamp', 'id'])


def downgrade() -> None:
    op.drop_table('event')
    op.drop_table('plant')
    op.drop_table('plant_archetype')
    op.drop_table('room')
    op.drop_table('users')
