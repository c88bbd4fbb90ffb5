"""Initial schema: users, campaigns, sessions and the world entities

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-16 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = '3f1c2a9d7e10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=256), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('subscription_tier', sa.String(length=20), nullable=True),
        sa.Column('subscription_expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_table('usage_tracking',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('sessions_recorded', sa.Integer(), nullable=False),
        sa.Column('ai_recaps_generated', sa.Integer(), nullable=False),
        sa.Column('transcription_minutes', sa.Integer(), nullable=False),
        sa.Column('storage_used_mb', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'month', name='uq_usage_user_month')
    )
    op.create_table('campaigns',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('dm_name', sa.String(length=200), nullable=False),
        sa.Column('player_names', sa.JSON(), nullable=True),
        sa.Column('cover_image_url', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('campaign_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('session_number', sa.Integer(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('audio_url', sa.String(length=500), nullable=True),
        sa.Column('audio_size_bytes', sa.Integer(), nullable=True),
        sa.Column('transcript', sa.Text(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('key_moments', sa.JSON(), nullable=True),
        sa.Column('npcs_mentioned', sa.JSON(), nullable=True),
        sa.Column('locations_mentioned', sa.JSON(), nullable=True),
        sa.Column('loot_acquired', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('processing_started_at', sa.DateTime(), nullable=True),
        sa.Column('processing_completed_at', sa.DateTime(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('locations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('campaign_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=True),
        sa.Column('region', sa.String(length=200), nullable=True),
        sa.Column('climate', sa.String(length=100), nullable=True),
        sa.Column('population', sa.Text(), nullable=True),
        sa.Column('size', sa.String(length=100), nullable=True),
        sa.Column('government', sa.Text(), nullable=True),
        sa.Column('economy', sa.Text(), nullable=True),
        sa.Column('defenses', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('atmosphere', sa.Text(), nullable=True),
        sa.Column('history', sa.Text(), nullable=True),
        sa.Column('inhabitants', sa.Text(), nullable=True),
        sa.Column('points_of_interest', sa.Text(), nullable=True),
        sa.Column('notable_npcs', sa.Text(), nullable=True),
        sa.Column('dangers', sa.Text(), nullable=True),
        sa.Column('hooks', sa.Text(), nullable=True),
        sa.Column('secrets', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('map_url', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('pois',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('campaign_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('services', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('npcs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('campaign_id', sa.Integer(), nullable=True),
        sa.Column('location_id', sa.Integer(), nullable=True),
        sa.Column('poi_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('npc_type', sa.String(length=100), nullable=True),
        sa.Column('race', sa.String(length=100), nullable=True),
        sa.Column('class_or_occupation', sa.String(length=200), nullable=True),
        sa.Column('level', sa.Integer(), nullable=True),
        sa.Column('alignment', sa.String(length=50), nullable=True),
        sa.Column('faction', sa.String(length=200), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('armor_class', sa.Integer(), nullable=True),
        sa.Column('hit_points', sa.String(length=50), nullable=True),
        sa.Column('speed', sa.String(length=50), nullable=True),
        sa.Column('challenge_rating', sa.String(length=20), nullable=True),
        sa.Column('ability_scores', sa.JSON(), nullable=True),
        sa.Column('skills', sa.Text(), nullable=True),
        sa.Column('languages', sa.Text(), nullable=True),
        sa.Column('abilities', sa.Text(), nullable=True),
        sa.Column('appearance', sa.Text(), nullable=True),
        sa.Column('personality', sa.Text(), nullable=True),
        sa.Column('voice_mannerisms', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('backstory', sa.Text(), nullable=True),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('secrets', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=300), nullable=True),
        sa.Column('relationship', sa.String(length=200), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('location_id IS NULL OR poi_id IS NULL', name='ck_npc_single_placement'),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['poi_id'], ['pois.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('npc_pois',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('npc_id', sa.Integer(), nullable=False),
        sa.Column('poi_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['npc_id'], ['npcs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['poi_id'], ['pois.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('campaign_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=True),
        sa.Column('rarity', sa.String(length=50), nullable=True),
        sa.Column('value', sa.String(length=100), nullable=True),
        sa.Column('weight', sa.String(length=50), nullable=True),
        sa.Column('attunement', sa.Boolean(), nullable=True),
        sa.Column('requires_attunement_by', sa.String(length=200), nullable=True),
        sa.Column('charges', sa.Integer(), nullable=True),
        sa.Column('cursed', sa.Boolean(), nullable=True),
        sa.Column('damage', sa.String(length=50), nullable=True),
        sa.Column('damage_type', sa.String(length=50), nullable=True),
        sa.Column('armor_class_bonus', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('properties', sa.Text(), nullable=True),
        sa.Column('history', sa.Text(), nullable=True),
        sa.Column('lore', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table('notes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('campaign_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('is_lorebook', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('notes')
    op.drop_table('items')
    op.drop_table('npc_pois')
    op.drop_table('npcs')
    op.drop_table('pois')
    op.drop_table('locations')
    op.drop_table('sessions')
    op.drop_table('campaigns')
    op.drop_table('usage_tracking')
    op.drop_table('users')
