"""Initial VoxArena schema

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-10-17

Creates:
- personas (debate character profiles)
- taxonomies (controlled vocabulary terms)
- taxonomy_categories (admin category metadata)
- persona_taxonomies (persona <-> term links)
- debates
- debate_participants (ordered roster)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b64'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        'personas',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('nickname', sa.Text()),
        sa.Column('age_group', sa.Text()),
        sa.Column('gender_identity', sa.Text()),
        sa.Column('pronouns', sa.Text()),
        sa.Column('profession', sa.Text()),
        sa.Column('temperament', sa.Text()),
        sa.Column('confidence', sa.Integer()),
        sa.Column('verbosity', sa.Integer()),
        sa.Column('tone', sa.Text()),
        sa.Column('vocabulary_style', sa.Text()),
        sa.Column('conflict_style', sa.Text()),
        sa.Column('accent_note', sa.Text()),
        sa.Column('voice_provider', sa.Text()),
        sa.Column('voice_style', JSON_TYPE),
        sa.Column('debate_approach', JSON_TYPE),
        sa.Column('emotion_map', JSON_TYPE),
        sa.Column('quirks', JSON_TYPE),
        sa.Column('avatar_url', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("confidence IS NULL OR (confidence >= 0 AND confidence <= 10)", name='valid_confidence'),
        sa.CheckConstraint("verbosity IS NULL OR (verbosity >= 0 AND verbosity <= 10)", name='valid_verbosity'),
    )
    op.create_index('idx_personas_created', 'personas', ['created_at'])

    op.create_table(
        'taxonomies',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('category', sa.Text(), nullable=False),
        sa.Column('term', sa.Text(), nullable=False),
        sa.Column('slug', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('category', 'term', name='uq_taxonomy_category_term'),
    )
    op.create_index('idx_taxonomies_category', 'taxonomies', ['category', 'term'])

    op.create_table(
        'taxonomy_categories',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('key', sa.Text(), unique=True),
        sa.Column('full_name', sa.Text(), nullable=False, unique=True),
        sa.Column('description', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'persona_taxonomies',
        sa.Column('persona_id', sa.Uuid(as_uuid=True), sa.ForeignKey('personas.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('taxonomy_id', sa.Uuid(as_uuid=True), sa.ForeignKey('taxonomies.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_index('idx_persona_taxonomies_taxonomy', 'persona_taxonomies', ['taxonomy_id'])

    op.create_table(
        'debates',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('topic', sa.Text(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('format', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='DRAFT'),
        sa.Column('config', JSON_TYPE),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("format IN ('structured', 'podcast')", name='valid_debate_format'),
        sa.CheckConstraint("status IN ('DRAFT', 'ACTIVE', 'COMPLETED', 'ARCHIVED')", name='valid_debate_status'),
    )
    op.create_index('idx_debates_created', 'debates', ['created_at'])

    op.create_table(
        'debate_participants',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('debate_id', sa.Uuid(as_uuid=True), sa.ForeignKey('debates.id'), nullable=False),
        sa.Column('persona_id', sa.Uuid(as_uuid=True), sa.ForeignKey('personas.id'), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('display_name', sa.Text()),
        sa.Column('voice_id', sa.Text()),
        sa.Column('meta', JSON_TYPE),
        sa.CheckConstraint("role IN ('MODERATOR', 'DEBATER', 'HOST', 'GUEST')", name='valid_participant_role'),
    )
    op.create_index('idx_debate_participants_debate', 'debate_participants', ['debate_id', 'order_index'])
    op.create_index('idx_debate_participants_persona', 'debate_participants', ['persona_id'])


def downgrade() -> None:
    op.drop_table('debate_participants')
    op.drop_table('debates')
    op.drop_table('persona_taxonomies')
    op.drop_table('taxonomy_categories')
    op.drop_table('taxonomies')
    op.drop_table('personas')
