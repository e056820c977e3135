"""
API endpoints for managing debates and their participant rosters.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voxarena_backend.db_session import get_async_session
from voxarena_backend.schemas import DebateResponse, OkResponse
from voxarena_backend.services import debate_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/debates", tags=["debates"])


@router.get("", response_model=List[DebateResponse])
async def list_debates(
    status: Optional[str] = None,
    debate_format: Optional[str] = Query(None, alias="format"),
    db: AsyncSession = Depends(get_async_session),
):
    """List debates newest first, optionally filtered by status and format."""
    try:
        debates = await debate_service.list_debates(db, status=status, debate_format=debate_format)
        logger.info(f"Found {len(debates)} debates (status={status}, format={debate_format})")
        return [DebateResponse.model_validate(d) for d in debates]
    except Exception as e:
        logger.error(f"Failed to fetch debates: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch debates: {str(e)}")


@router.post("", response_model=DebateResponse, status_code=201)
async def create_debate(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Create a debate, optionally with its participant roster.

    The roster is checked against the format's role requirements before
    anything is written.
    """
    try:
        debate = await debate_service.create_debate(db, payload)
        return DebateResponse.model_validate(debate)

    except ValueError as e:
        logger.warning(f"Rejected debate create: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to create debate: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create debate: {str(e)}")


@router.get("/{debate_id}", response_model=DebateResponse)
async def get_debate(debate_id: str, db: AsyncSession = Depends(get_async_session)):
    try:
        debate = await debate_service.get_debate(db, debate_id)
        return DebateResponse.model_validate(debate)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to fetch debate {debate_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch debate: {str(e)}")


@router.put("/{debate_id}", response_model=DebateResponse)
async def update_debate(
    debate_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    """Update submitted fields; a non-empty ``participants`` array replaces the roster."""
    try:
        debate = await debate_service.update_debate(db, debate_id, payload)
        return DebateResponse.model_validate(debate)

    except ValueError as e:
        logger.warning(f"Rejected debate update {debate_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to update debate {debate_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update debate: {str(e)}")


@router.delete("/{debate_id}", response_model=OkResponse)
async def delete_debate(debate_id: str, db: AsyncSession = Depends(get_async_session)):
    try:
        await debate_service.delete_debate(db, debate_id)
        return OkResponse()

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to delete debate {debate_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete debate: {str(e)}")
