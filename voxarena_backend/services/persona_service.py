"""
Persona persistence and query operations.

Routers stay free of inline DB logic: they hand the raw request body to
these functions and translate the exceptions they raise into HTTP codes.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from voxarena_backend.models import DebateParticipant, Persona, PersonaTaxonomy, Taxonomy
from voxarena_backend.services.description_enricher import (
    build_persona_profile,
    generate_persona_description,
)
from voxarena_backend.services.errors import PayloadValidationError, PersonaInUseError
from voxarena_backend.services.request_normalizer import (
    UNSET,
    normalize_persona_create,
    normalize_persona_update,
)
from voxarena_backend.services.llm_config import merge_llm_config, overrides_from_request
from voxarena_backend.services.taxonomy_links import resolve_taxonomy_ids

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_uuid(value: Any, field_name: str = "id") -> uuid.UUID:
    """Parse a string to UUID, raising ``PayloadValidationError`` with a clear message."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError) as exc:
        raise PayloadValidationError(f"Invalid UUID for {field_name}: {value}") from exc


def _persona_query():
    return (
        select(Persona)
        .options(selectinload(Persona.taxonomies).selectinload(PersonaTaxonomy.taxonomy))
        .execution_options(populate_existing=True)
    )


async def fetch_taxonomies(db: AsyncSession, taxonomy_ids: Sequence[str]) -> List[Taxonomy]:
    """Load the requested terms, rejecting any id that doesn't exist."""
    if not taxonomy_ids:
        return []
    uuids = [parse_uuid(taxonomy_id, "taxonomyId") for taxonomy_id in taxonomy_ids]
    result = await db.execute(select(Taxonomy).where(Taxonomy.id.in_(uuids)))
    found = {taxonomy.id: taxonomy for taxonomy in result.scalars().all()}
    missing = [str(taxonomy_uuid) for taxonomy_uuid in uuids if taxonomy_uuid not in found]
    if missing:
        raise PayloadValidationError(f"Unknown taxonomy ids: {', '.join(missing)}")
    return [found[taxonomy_uuid] for taxonomy_uuid in uuids]


async def replace_persona_links(db: AsyncSession, persona_id: uuid.UUID,
                                taxonomy_ids: Sequence[uuid.UUID]) -> None:
    """
    Make the persona's link set equal ``taxonomy_ids``.

    Only the difference is written: stale links are deleted, missing ones
    inserted, links present on both sides are left in place.
    """
    wanted = set(taxonomy_ids)
    result = await db.execute(
        select(PersonaTaxonomy.taxonomy_id).where(PersonaTaxonomy.persona_id == persona_id)
    )
    existing = set(result.scalars().all())

    stale = existing - wanted
    if stale:
        await db.execute(
            delete(PersonaTaxonomy).where(
                PersonaTaxonomy.persona_id == persona_id,
                PersonaTaxonomy.taxonomy_id.in_(list(stale)),
            )
        )
    for taxonomy_id in wanted - existing:
        db.add(PersonaTaxonomy(persona_id=persona_id, taxonomy_id=taxonomy_id))
    await db.flush()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def list_personas(db: AsyncSession) -> List[Persona]:
    """Return personas newest first with their taxonomy links loaded."""
    result = await db.execute(_persona_query().order_by(Persona.created_at.desc()))
    return list(result.scalars().all())


async def get_persona(db: AsyncSession, persona_id: Any) -> Persona:
    """Fetch a single persona. Raises ``LookupError`` if not found."""
    persona_uuid = parse_uuid(persona_id, "persona_id")
    result = await db.execute(_persona_query().where(Persona.id == persona_uuid))
    persona = result.scalar_one_or_none()
    if persona is None:
        raise LookupError(f"Persona {persona_id} not found")
    return persona


async def create_persona(db: AsyncSession, body: Dict[str, Any]) -> Persona:
    """
    Create a persona and its taxonomy links from a raw request body.

    A description is generated when none is supplied; generation never
    fails the request.
    """
    data = normalize_persona_create(body)
    taxonomy_ids = resolve_taxonomy_ids(body)
    taxonomies = await fetch_taxonomies(db, [] if taxonomy_ids is UNSET else taxonomy_ids)

    persona = Persona(**data)
    if not persona.description:
        persona.description = await generate_persona_description(
            build_persona_profile(persona, taxonomies)
        )

    db.add(persona)
    await db.flush()
    for taxonomy in taxonomies:
        db.add(PersonaTaxonomy(persona_id=persona.id, taxonomy_id=taxonomy.id))
    await db.commit()

    logger.info("Persona created: %s (%d taxonomy links)", persona.id, len(taxonomies))
    return await get_persona(db, persona.id)


async def update_persona(db: AsyncSession, persona_id: Any, body: Dict[str, Any]) -> Persona:
    """
    Partially update a persona. Raises ``LookupError`` if not found.

    Only submitted fields change. Links are replaced when the body carries
    any taxonomy field; ``regenerateDescription: true`` (or an empty stored
    description) triggers a new description.
    """
    persona = await get_persona(db, persona_id)
    data = normalize_persona_update(body)
    taxonomy_ids = resolve_taxonomy_ids(body)

    if taxonomy_ids is UNSET:
        taxonomies = [link.taxonomy for link in persona.taxonomies if link.taxonomy]
    else:
        taxonomies = await fetch_taxonomies(db, taxonomy_ids)

    for column, value in data.items():
        setattr(persona, column, value)

    if body.get("regenerateDescription") is True or not persona.description:
        persona.description = await generate_persona_description(
            build_persona_profile(persona, taxonomies)
        )

    if taxonomy_ids is not UNSET:
        await replace_persona_links(db, persona.id, [taxonomy.id for taxonomy in taxonomies])

    await db.commit()
    logger.info("Persona updated: %s (fields=%s)", persona.id, sorted(data))
    return await get_persona(db, persona.id)


async def regenerate_description(db: AsyncSession, persona_id: Any,
                                 overrides: Optional[Dict[str, Any]] = None) -> Persona:
    """
    Replace the stored description with a freshly generated one.

    ``overrides`` may carry ``model``, ``temperature`` and ``maxTokens`` for
    this call only; anything else in it is ignored.
    """
    persona = await get_persona(db, persona_id)
    taxonomies = [link.taxonomy for link in persona.taxonomies if link.taxonomy]
    config = merge_llm_config(overrides_from_request(overrides))
    persona.description = await generate_persona_description(
        build_persona_profile(persona, taxonomies), config
    )
    await db.commit()
    logger.info("Persona description regenerated: %s", persona.id)
    return await get_persona(db, persona.id)


async def delete_persona(db: AsyncSession, persona_id: Any) -> None:
    """
    Delete a persona and its taxonomy links.

    Raises ``LookupError`` if not found and ``PersonaInUseError`` while any
    debate participant still references it. Taxonomy terms are untouched.
    """
    persona = await get_persona(db, persona_id)

    usage_count = await db.scalar(
        select(func.count()).select_from(DebateParticipant).where(
            DebateParticipant.persona_id == persona.id
        )
    )
    if usage_count:
        raise PersonaInUseError(persona.id, usage_count)

    await db.execute(delete(PersonaTaxonomy).where(PersonaTaxonomy.persona_id == persona.id))
    await db.execute(delete(Persona).where(Persona.id == persona.id))
    await db.commit()
    logger.info("Persona deleted: %s", persona.id)
