"""Pydantic response models shared by the routers.

Fields are snake_case in Python and camelCase on the wire. Every model reads
straight from the ORM rows (``from_attributes``).
"""
import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_snake

from voxarena_backend.services.taxonomy_links import project_legacy_fields


class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _list_or_empty(value: Any) -> Any:
    return [] if value is None else value


class OkResponse(BaseModel):
    ok: bool = True


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------

class TermListItem(CamelModel):
    """A term as listed under its category (the category itself is omitted)."""
    id: uuid.UUID
    term: str
    slug: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class TermResponse(TermListItem):
    category: str


class TermPage(CamelModel):
    items: List[TermListItem]
    total: int
    page: int
    page_size: int


class CategoryResponse(CamelModel):
    id: uuid.UUID
    key: Optional[str] = None
    full_name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryPage(CamelModel):
    items: List[CategoryResponse]
    total: int
    page: int
    page_size: int


# ---------------------------------------------------------------------------
# Personas
# ---------------------------------------------------------------------------

class TaxonomyLinkResponse(CamelModel):
    persona_id: uuid.UUID
    taxonomy_id: uuid.UUID
    taxonomy: Optional[TermResponse] = None


class PersonaResponse(CamelModel):
    """
    A persona with its taxonomy links.

    ``taxonomy_ids`` and the legacy flat fields (``university_id``,
    ``organization_id``, ``employer_id``, ``region_id``, ``culture_ids``) are
    derived from ``taxonomies`` whenever the model is built.
    """
    id: uuid.UUID
    name: str
    nickname: Optional[str] = None
    age_group: Optional[str] = None
    gender_identity: Optional[str] = None
    pronouns: Optional[str] = None
    profession: Optional[str] = None
    temperament: Optional[str] = None
    confidence: Optional[int] = None
    verbosity: Optional[int] = None
    tone: Optional[str] = None
    vocabulary_style: Optional[str] = None
    conflict_style: Optional[str] = None
    accent_note: Optional[str] = None
    voice_provider: Optional[str] = None
    voice_style: Optional[Any] = None
    debate_approach: List[Any] = []
    emotion_map: List[Any] = []
    quirks: List[Any] = []
    avatar_url: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    taxonomies: List[TaxonomyLinkResponse] = []

    taxonomy_ids: List[str] = []
    university_id: Optional[str] = None
    organization_id: Optional[str] = None
    employer_id: Optional[str] = None
    region_id: Optional[str] = None
    culture_ids: List[str] = []

    @field_validator("debate_approach", "emotion_map", "quirks", "taxonomies", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return _list_or_empty(value)

    @model_validator(mode="after")
    def derive_link_fields(self):
        self.taxonomy_ids = [str(link.taxonomy_id) for link in self.taxonomies]
        for key, value in project_legacy_fields(self.taxonomies).items():
            setattr(self, to_snake(key), value)
        return self


# ---------------------------------------------------------------------------
# Debates
# ---------------------------------------------------------------------------

class PersonaSummary(CamelModel):
    id: uuid.UUID
    name: str
    nickname: Optional[str] = None
    avatar_url: Optional[str] = None
    debate_approach: List[Any] = []
    temperament: Optional[str] = None
    conflict_style: Optional[str] = None
    vocabulary_style: Optional[str] = None

    @field_validator("debate_approach", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return _list_or_empty(value)


class ParticipantResponse(CamelModel):
    id: uuid.UUID
    debate_id: uuid.UUID
    persona_id: uuid.UUID
    role: str
    order_index: int
    display_name: Optional[str] = None
    voice_id: Optional[str] = None
    meta: Optional[Any] = None
    persona: Optional[PersonaSummary] = None


class DebateResponse(CamelModel):
    id: uuid.UUID
    title: str
    topic: str
    description: Optional[str] = None
    format: str
    status: str
    config: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    participants: List[ParticipantResponse] = []

    @field_validator("participants", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return _list_or_empty(value)

    @field_validator("participants")
    @classmethod
    def sorted_by_order(cls, value):
        return sorted(value, key=lambda participant: participant.order_index)
