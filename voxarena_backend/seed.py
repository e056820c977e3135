"""
Seed the taxonomy vocabulary and a sample persona.

Safe to re-run: terms are upserted by (category, term) and the sample
persona is only created when no persona with its name exists.

    python -m voxarena_backend.seed
"""

import asyncio
import logging
from typing import Dict, List, Tuple

from sqlalchemy import select

from voxarena_backend.db_session import async_engine, get_async_session_context
from voxarena_backend.models import Base, Persona, Taxonomy
from voxarena_backend.services.persona_service import create_persona
from voxarena_backend.services.taxonomy_service import slugify

logger = logging.getLogger("voxarena_backend")

VOCABULARY: Dict[str, List[str]] = {
    "university": ["MIT", "Harvard", "Oxford", "IIT Delhi", "University of Nairobi"],
    "organization": ["UN Agency", "UNICEF", "Tesla", "Chase Bank", "Greenpeace", "Google", "Local Government"],
    "culture": [
        "Western Europe", "East Asia", "South Asia", "Sub-Saharan Africa",
        "Latin America", "North America", "Middle East & North Africa",
    ],
    "ageGroup": ["Teen", "Adult", "Middle-aged", "Senior"],
    "genderIdentity": ["Male", "Female", "Non-binary", "Other"],
    "political": ["Conservative", "Liberal", "Socialist", "Libertarian", "Anarchist"],
    "religion": ["Catholic", "Protestant", "Muslim", "Buddhist", "Hindu", "Atheist", "Agnostic"],
    "philosophy": ["Utilitarian", "Stoic", "Existentialist", "Pragmatic"],
    "accent": ["British RP", "Southern US", "Nigerian English", "Singlish"],
    "archetype": ["Analytical", "Charismatic", "Diplomatic", "Sarcastic", "Humorous", "Reserved"],
}

SAMPLE_PERSONA = {
    "name": "Dr. Eliza Moore",
    "profession": "Economist",
    "temperament": "Analytical",
    "confidence": 7,
    "verbosity": 5,
    "tone": "Neutral",
    "vocabularyStyle": "Academic",
    "debateApproach": ["Logical", "Evidence-driven"],
    "quirks": ["Always cites statistics"],
    "ageGroup": "Adult",
    "genderIdentity": "Female",
}

SAMPLE_PERSONA_TERMS: List[Tuple[str, str]] = [
    ("university", "Harvard"),
    ("organization", "UNICEF"),
    ("culture", "South Asia"),
    ("political", "Liberal"),
    ("religion", "Muslim"),
    ("philosophy", "Stoic"),
    ("accent", "British RP"),
    ("archetype", "Analytical"),
    ("ageGroup", "Adult"),
    ("genderIdentity", "Female"),
]


async def upsert_vocabulary(db) -> Dict[Tuple[str, str], Taxonomy]:
    """Insert missing terms and reactivate existing ones."""
    result = await db.execute(select(Taxonomy))
    existing = {(t.category, t.term): t for t in result.scalars().all()}

    created = 0
    for category, terms in VOCABULARY.items():
        for term in terms:
            row = existing.get((category, term))
            if row is None:
                row = Taxonomy(category=category, term=term, slug=slugify(term), is_active=True)
                db.add(row)
                existing[(category, term)] = row
                created += 1
            else:
                row.is_active = True
    await db.commit()
    logger.info("Vocabulary seeded: %d new terms, %d total", created, len(existing))
    return existing


async def seed_sample_persona(db, terms: Dict[Tuple[str, str], Taxonomy]) -> None:
    found = await db.scalar(select(Persona.id).where(Persona.name == SAMPLE_PERSONA["name"]))
    if found is not None:
        logger.info("Sample persona already present (%s); skipping", found)
        return

    body = dict(SAMPLE_PERSONA)
    body["taxonomyIds"] = [str(terms[key].id) for key in SAMPLE_PERSONA_TERMS if key in terms]
    persona = await create_persona(db, body)
    logger.info("Sample persona created: %s", persona.id)


async def main() -> None:
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_async_session_context() as db:
        terms = await upsert_vocabulary(db)
        await seed_sample_persona(db, terms)

    await async_engine.dispose()
    logger.info("Seed complete")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(main())
