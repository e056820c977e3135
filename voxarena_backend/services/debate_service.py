"""
Debate persistence and query operations.

Participants are stored as an ordered roster; writes replace the roster as
a whole and never touch the personas they point at.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from voxarena_backend.models import DEBATE_STATUSES, Debate, DebateParticipant, Persona
from voxarena_backend.services.debate_validator import validate_participants
from voxarena_backend.services.errors import PayloadValidationError
from voxarena_backend.services.persona_service import parse_uuid
from voxarena_backend.services.request_normalizer import (
    norm_str,
    normalize_debate_create,
    normalize_debate_update,
    normalize_participants,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _debate_query():
    return (
        select(Debate)
        .options(selectinload(Debate.participants).selectinload(DebateParticipant.persona))
        .execution_options(populate_existing=True)
    )


def check_status_transition(current: str, requested: str) -> None:
    """Status only moves forward: DRAFT -> ACTIVE -> COMPLETED -> ARCHIVED."""
    if DEBATE_STATUSES.index(requested) < DEBATE_STATUSES.index(current):
        raise PayloadValidationError(f"Cannot move debate status from {current} back to {requested}")


async def _check_personas_exist(db: AsyncSession, participants: Sequence[Dict[str, Any]]) -> None:
    for participant in participants:
        participant["persona_id"] = parse_uuid(participant["persona_id"], "personaId")

    wanted = {p["persona_id"] for p in participants}
    result = await db.execute(select(Persona.id).where(Persona.id.in_(list(wanted))))
    missing = wanted - set(result.scalars().all())
    if missing:
        raise PayloadValidationError(
            f"Unknown persona ids: {', '.join(sorted(str(m) for m in missing))}"
        )


async def _replace_participants(db: AsyncSession, debate_id, participants: Sequence[Dict[str, Any]]) -> None:
    await db.execute(delete(DebateParticipant).where(DebateParticipant.debate_id == debate_id))
    for participant in participants:
        db.add(DebateParticipant(debate_id=debate_id, **participant))
    await db.flush()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def list_debates(db: AsyncSession, *, status: Optional[str] = None,
                       debate_format: Optional[str] = None) -> List[Debate]:
    """Return debates newest first, optionally filtered by status and format."""
    query = _debate_query().order_by(Debate.created_at.desc())
    status = norm_str(status)
    if status:
        query = query.where(Debate.status == status.upper())
    debate_format = norm_str(debate_format)
    if debate_format:
        query = query.where(Debate.format == debate_format.lower())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_debate(db: AsyncSession, debate_id: Any) -> Debate:
    """Fetch a debate with its ordered roster. Raises ``LookupError`` if not found."""
    debate_uuid = parse_uuid(debate_id, "debate_id")
    result = await db.execute(_debate_query().where(Debate.id == debate_uuid))
    debate = result.scalar_one_or_none()
    if debate is None:
        raise LookupError(f"Debate {debate_id} not found")
    return debate


async def create_debate(db: AsyncSession, body: Dict[str, Any]) -> Debate:
    data = normalize_debate_create(body)
    participants = normalize_participants(body)
    if participants:
        validate_participants(data["format"], participants)
        await _check_personas_exist(db, participants)

    debate = Debate(**data)
    db.add(debate)
    await db.flush()
    if participants:
        await _replace_participants(db, debate.id, participants)
    await db.commit()

    logger.info("Debate created: %s (%s, %d participants)", debate.id, debate.format,
                len(participants or []))
    return await get_debate(db, debate.id)


async def update_debate(db: AsyncSession, debate_id: Any, body: Dict[str, Any]) -> Debate:
    """
    Partially update a debate. Raises ``LookupError`` if not found.

    A non-empty ``participants`` array replaces the roster and is checked
    against the (possibly new) format first; omitting it leaves the roster
    alone and skips the check.
    """
    debate = await get_debate(db, debate_id)
    data = normalize_debate_update(body)
    participants = normalize_participants(body)

    if "status" in data:
        check_status_transition(debate.status, data["status"])

    if participants:
        validate_participants(data.get("format", debate.format), participants)
        await _check_personas_exist(db, participants)

    for column, value in data.items():
        setattr(debate, column, value)

    if participants:
        await _replace_participants(db, debate.id, participants)

    await db.commit()
    logger.info("Debate updated: %s (fields=%s, roster=%s)", debate.id, sorted(data),
                "replaced" if participants else "unchanged")
    return await get_debate(db, debate.id)


async def delete_debate(db: AsyncSession, debate_id: Any) -> None:
    """Remove a debate's participants, then the debate. Personas are kept."""
    debate = await get_debate(db, debate_id)
    await db.execute(delete(DebateParticipant).where(DebateParticipant.debate_id == debate.id))
    await db.execute(delete(Debate).where(Debate.id == debate.id))
    await db.commit()
    logger.info("Debate deleted: %s", debate.id)
