"""
API endpoints for taxonomy category metadata (admin screens).
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from voxarena_backend.db_session import get_async_session
from voxarena_backend.schemas import CategoryPage, CategoryResponse, OkResponse
from voxarena_backend.services import taxonomy_service
from voxarena_backend.services.errors import ConflictError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/taxonomycategories", tags=["taxonomy-categories"])


@router.get("", response_model=CategoryPage)
async def list_categories(
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        result = await taxonomy_service.list_categories(db, page, page_size)
        return CategoryPage.model_validate(result)
    except Exception as e:
        logger.error(f"Failed to fetch taxonomy categories: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch taxonomy categories: {str(e)}")


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        category = await taxonomy_service.create_category(db, payload)
        return CategoryResponse.model_validate(category)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to create taxonomy category: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create taxonomy category: {str(e)}")


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, db: AsyncSession = Depends(get_async_session)):
    try:
        category = await taxonomy_service.get_category(db, category_id)
        return CategoryResponse.model_validate(category)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to fetch taxonomy category {category_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch taxonomy category: {str(e)}")


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        category = await taxonomy_service.update_category(db, category_id, payload)
        return CategoryResponse.model_validate(category)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to update taxonomy category {category_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update taxonomy category: {str(e)}")


@router.delete("/{category_id}", response_model=OkResponse)
async def delete_category(category_id: str, db: AsyncSession = Depends(get_async_session)):
    try:
        await taxonomy_service.delete_category(db, category_id)
        return OkResponse()

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        logger.error(f"Failed to delete taxonomy category {category_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete taxonomy category: {str(e)}")
