"""
API endpoints for taxonomy terms.

Terms are grouped by a free-text category; the term listing is paginated.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voxarena_backend.db_session import get_async_session
from voxarena_backend.schemas import OkResponse, TermPage, TermResponse
from voxarena_backend.services import taxonomy_service
from voxarena_backend.services.errors import ConflictError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/taxonomy", tags=["taxonomy"])


@router.get("/categories", response_model=List[str])
async def list_term_categories(db: AsyncSession = Depends(get_async_session)):
    """Distinct category strings in use by terms."""
    try:
        return await taxonomy_service.list_term_categories(db)
    except Exception as e:
        logger.error(f"Failed to fetch taxonomy categories: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch taxonomy categories: {str(e)}")


@router.get("/terms", response_model=TermPage)
async def list_terms(
    category: Optional[str] = None,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    db: AsyncSession = Depends(get_async_session),
):
    # page values stay strings here; junk falls back to defaults in the service
    try:
        result = await taxonomy_service.list_terms(db, category, page, page_size)
        return TermPage.model_validate(result)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to fetch taxonomy terms: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch taxonomy terms: {str(e)}")


@router.post("/terms", response_model=TermResponse, status_code=201)
async def create_term(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        term = await taxonomy_service.create_term(db, payload)
        return TermResponse.model_validate(term)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to create taxonomy term: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create taxonomy term: {str(e)}")


@router.put("/terms/{term_id}", response_model=TermResponse)
async def update_term(
    term_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        term = await taxonomy_service.update_term(db, term_id, payload)
        return TermResponse.model_validate(term)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to update taxonomy term {term_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update taxonomy term: {str(e)}")


@router.delete("/terms/{term_id}", response_model=OkResponse)
async def delete_term(term_id: str, db: AsyncSession = Depends(get_async_session)):
    """Delete a term; personas tagged with it lose the link."""
    try:
        await taxonomy_service.delete_term(db, term_id)
        return OkResponse()

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to delete taxonomy term {term_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete taxonomy term: {str(e)}")
