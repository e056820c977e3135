"""
API endpoints for managing personas.

Provides endpoints for:
- Listing and fetching personas with their taxonomy links
- Creating personas (description generated when none is supplied)
- Partially updating personas and their taxonomy links
- Regenerating a persona's description on demand
- Deleting personas that are not seated in any debate
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from voxarena_backend.db_session import get_async_session
from voxarena_backend.schemas import OkResponse, PersonaResponse
from voxarena_backend.services import persona_service
from voxarena_backend.services.errors import ConflictError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/personas", tags=["personas"])


@router.get("", response_model=List[PersonaResponse])
async def list_personas(db: AsyncSession = Depends(get_async_session)):
    """List all personas, newest first."""
    try:
        personas = await persona_service.list_personas(db)
        logger.info(f"Found {len(personas)} personas")
        return [PersonaResponse.model_validate(p) for p in personas]
    except Exception as e:
        logger.error(f"Failed to fetch personas: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch personas: {str(e)}")


@router.post("", response_model=PersonaResponse, status_code=201)
async def create_persona(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Create a persona from a raw form body.

    Accepts camelCase keys and their legacy aliases; taxonomy links may be
    given as ``taxonomyIds`` or as the granular single/multi-select fields.
    """
    try:
        persona = await persona_service.create_persona(db, payload)
        return PersonaResponse.model_validate(persona)

    except ValueError as e:
        logger.warning(f"Rejected persona create: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to create persona: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create persona: {str(e)}")


@router.get("/{persona_id}", response_model=PersonaResponse)
async def get_persona(persona_id: str, db: AsyncSession = Depends(get_async_session)):
    try:
        persona = await persona_service.get_persona(db, persona_id)
        return PersonaResponse.model_validate(persona)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to fetch persona {persona_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch persona: {str(e)}")


@router.put("/{persona_id}", response_model=PersonaResponse)
async def update_persona(
    persona_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    """Update only the submitted fields of a persona."""
    try:
        persona = await persona_service.update_persona(db, persona_id, payload)
        return PersonaResponse.model_validate(persona)

    except ValueError as e:
        logger.warning(f"Rejected persona update {persona_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to update persona {persona_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update persona: {str(e)}")


@router.post("/{persona_id}/description", response_model=PersonaResponse)
async def regenerate_description(
    persona_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Generate a fresh description for an existing persona.

    An optional body of ``{"model", "temperature", "maxTokens"}`` overrides
    the env model settings for this call.
    """
    try:
        persona = await persona_service.regenerate_description(db, persona_id, payload)
        return PersonaResponse.model_validate(persona)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to regenerate description for {persona_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to regenerate description: {str(e)}")


@router.delete("/{persona_id}", response_model=OkResponse)
async def delete_persona(persona_id: str, db: AsyncSession = Depends(get_async_session)):
    """
    Delete a persona and its taxonomy links.

    Returns 409 while the persona is still used by a debate.
    """
    try:
        await persona_service.delete_persona(db, persona_id)
        return OkResponse()

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except ConflictError as e:
        logger.info(f"Refused to delete persona {persona_id}: {str(e)}")
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to delete persona {persona_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete persona: {str(e)}")
