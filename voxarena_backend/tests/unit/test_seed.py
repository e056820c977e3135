import pytest
from sqlalchemy import func, select

from voxarena_backend.models import Persona, PersonaTaxonomy, Taxonomy
from voxarena_backend.seed import (
    SAMPLE_PERSONA,
    SAMPLE_PERSONA_TERMS,
    VOCABULARY,
    seed_sample_persona,
    upsert_vocabulary,
)


async def _run_seed(session_factory):
    async with session_factory() as db:
        terms = await upsert_vocabulary(db)
        await seed_sample_persona(db, terms)
    return terms


@pytest.mark.asyncio
async def test_seeding_twice_creates_nothing_new(session_factory, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    await _run_seed(session_factory)
    await _run_seed(session_factory)

    vocabulary_size = sum(len(terms) for terms in VOCABULARY.values())
    async with session_factory() as db:
        term_count = await db.scalar(select(func.count()).select_from(Taxonomy))
        names = (await db.execute(select(Persona.name))).scalars().all()
        link_count = await db.scalar(select(func.count()).select_from(PersonaTaxonomy))

    assert term_count == vocabulary_size
    assert names == [SAMPLE_PERSONA["name"]]
    assert link_count == len(SAMPLE_PERSONA_TERMS)


@pytest.mark.asyncio
async def test_reseeding_reactivates_terms(session_factory, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    terms = await _run_seed(session_factory)
    category, term = next(iter(terms))

    async with session_factory() as db:
        row = await db.scalar(
            select(Taxonomy).where(Taxonomy.category == category, Taxonomy.term == term)
        )
        row.is_active = False
        await db.commit()

    await _run_seed(session_factory)

    async with session_factory() as db:
        row = await db.scalar(
            select(Taxonomy).where(Taxonomy.category == category, Taxonomy.term == term)
        )
        assert row.is_active is True


@pytest.mark.asyncio
async def test_sample_persona_gets_a_description(session_factory, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    await _run_seed(session_factory)

    async with session_factory() as db:
        persona = await db.scalar(select(Persona).where(Persona.name == SAMPLE_PERSONA["name"]))

    assert persona.description
