"""
SQLAlchemy models for VoxArena personas, debates and taxonomy.
"""

from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    Column, String, Integer, Boolean, Text, DateTime, JSON, Uuid,
    ForeignKey, Index, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

DEBATE_FORMATS = ("structured", "podcast")
DEBATE_STATUSES = ("DRAFT", "ACTIVE", "COMPLETED", "ARCHIVED")
PARTICIPANT_ROLES = ("MODERATOR", "DEBATER", "HOST", "GUEST")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Persona(Base):
    """AI debate character profile"""
    __tablename__ = "personas"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Identity
    name = Column(Text, nullable=False)
    nickname = Column(Text)
    age_group = Column(Text)
    gender_identity = Column(Text)
    pronouns = Column(Text)

    # Role
    profession = Column(Text)

    # Personality
    temperament = Column(Text)
    confidence = Column(Integer)  # 0-10
    verbosity = Column(Integer)  # 0-10
    tone = Column(Text)

    # Communication
    vocabulary_style = Column(Text)
    conflict_style = Column(Text)
    accent_note = Column(Text)
    voice_provider = Column(Text)
    voice_style = Column(JSONType)

    # Ordered string lists
    debate_approach = Column(JSONType)
    emotion_map = Column(JSONType)
    quirks = Column(JSONType)

    # Media / prose
    avatar_url = Column(Text)
    description = Column(Text)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    taxonomies = relationship(
        "PersonaTaxonomy",
        back_populates="persona",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "confidence IS NULL OR (confidence >= 0 AND confidence <= 10)",
            name='valid_confidence'
        ),
        CheckConstraint(
            "verbosity IS NULL OR (verbosity >= 0 AND verbosity <= 10)",
            name='valid_verbosity'
        ),
        Index('idx_personas_created', 'created_at'),
    )


class Taxonomy(Base):
    """Controlled-vocabulary term within a free-text category"""
    __tablename__ = "taxonomies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category = Column(Text, nullable=False)
    term = Column(Text, nullable=False)
    slug = Column(Text)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('category', 'term', name='uq_taxonomy_category_term'),
        Index('idx_taxonomies_category', 'category', 'term'),
    )


class TaxonomyCategory(Base):
    """Admin-managed category metadata (not joined to Taxonomy.category)"""
    __tablename__ = "taxonomy_categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    key = Column(Text, unique=True)
    full_name = Column(Text, nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class PersonaTaxonomy(Base):
    """Tag link between a persona and a taxonomy term"""
    __tablename__ = "persona_taxonomies"

    persona_id = Column(Uuid(as_uuid=True), ForeignKey('personas.id', ondelete='CASCADE'), primary_key=True)
    taxonomy_id = Column(Uuid(as_uuid=True), ForeignKey('taxonomies.id', ondelete='CASCADE'), primary_key=True)

    persona = relationship("Persona", back_populates="taxonomies")
    taxonomy = relationship("Taxonomy", lazy="selectin")

    __table_args__ = (
        Index('idx_persona_taxonomies_taxonomy', 'taxonomy_id'),
    )


class Debate(Base):
    """Configured multi-party exchange"""
    __tablename__ = "debates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    topic = Column(Text, nullable=False)
    description = Column(Text)
    format = Column(Text, nullable=False)  # 'structured', 'podcast'
    status = Column(Text, nullable=False, default='DRAFT')
    config = Column(JSONType)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    participants = relationship(
        "DebateParticipant",
        back_populates="debate",
        order_by="DebateParticipant.order_index",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "format IN ('structured', 'podcast')",
            name='valid_debate_format'
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'ACTIVE', 'COMPLETED', 'ARCHIVED')",
            name='valid_debate_status'
        ),
        Index('idx_debates_created', 'created_at'),
    )


class DebateParticipant(Base):
    """A persona seated in a debate with a role and speaking order"""
    __tablename__ = "debate_participants"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    debate_id = Column(Uuid(as_uuid=True), ForeignKey('debates.id'), nullable=False)
    # Reference only; removing a participant never removes the persona
    persona_id = Column(Uuid(as_uuid=True), ForeignKey('personas.id'), nullable=False)
    role = Column(Text, nullable=False)
    order_index = Column(Integer, nullable=False, default=0)
    display_name = Column(Text)
    voice_id = Column(Text)
    meta = Column(JSONType)

    debate = relationship("Debate", back_populates="participants")
    persona = relationship("Persona", lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "role IN ('MODERATOR', 'DEBATER', 'HOST', 'GUEST')",
            name='valid_participant_role'
        ),
        Index('idx_debate_participants_debate', 'debate_id', 'order_index'),
        Index('idx_debate_participants_persona', 'persona_id'),
    )
