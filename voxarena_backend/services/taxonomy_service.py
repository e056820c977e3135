"""
Taxonomy term and taxonomy category management.

Terms are grouped by their free-text ``category`` string. Category metadata
rows (``TaxonomyCategory``) are managed separately for the admin screens and
are not joined to terms.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voxarena_backend.models import PersonaTaxonomy, Taxonomy, TaxonomyCategory
from voxarena_backend.services.errors import ConflictError, PayloadValidationError
from voxarena_backend.services.persona_service import parse_uuid
from voxarena_backend.services.request_normalizer import norm_str

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def _to_int(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def clamp_pagination(page: Any = None, page_size: Any = None) -> Tuple[int, int]:
    """1-indexed page (>= 1) and page size clamped to [1, 100]."""
    page = max(1, _to_int(page, 1))
    page_size = max(1, min(MAX_PAGE_SIZE, _to_int(page_size, DEFAULT_PAGE_SIZE)))
    return page, page_size


async def _commit_or_conflict(db: AsyncSession, instance: Any, message: str) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(message) from exc
    await db.refresh(instance)


# ---------------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------------

async def list_term_categories(db: AsyncSession) -> List[str]:
    """Distinct category strings used by terms, alphabetical."""
    result = await db.execute(select(Taxonomy.category).distinct().order_by(Taxonomy.category))
    return list(result.scalars().all())


async def list_terms(db: AsyncSession, category: Optional[str], page: Any = None,
                     page_size: Any = None) -> Dict[str, Any]:
    category = norm_str(category)
    if not category:
        raise PayloadValidationError("Missing category")
    page, page_size = clamp_pagination(page, page_size)

    total = await db.scalar(
        select(func.count()).select_from(Taxonomy).where(Taxonomy.category == category)
    )
    result = await db.execute(
        select(Taxonomy)
        .where(Taxonomy.category == category)
        .order_by(Taxonomy.term.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return {
        "items": list(result.scalars().all()),
        "total": total or 0,
        "page": page,
        "page_size": page_size,
    }


async def get_term(db: AsyncSession, term_id: Any) -> Taxonomy:
    term_uuid = parse_uuid(term_id, "term_id")
    term = await db.get(Taxonomy, term_uuid)
    if term is None:
        raise LookupError(f"Taxonomy term {term_id} not found")
    return term


async def create_term(db: AsyncSession, body: Dict[str, Any]) -> Taxonomy:
    category = norm_str(body.get("category"))
    if not category:
        raise PayloadValidationError("Category is required")
    label = norm_str(body.get("term"))
    if not label:
        raise PayloadValidationError("Term is required")

    term = Taxonomy(
        category=category,
        term=label,
        slug=norm_str(body.get("slug")) or slugify(label),
        description=norm_str(body.get("description")),
        is_active=body["isActive"] if isinstance(body.get("isActive"), bool) else True,
    )
    db.add(term)
    await _commit_or_conflict(db, term, f"Term '{label}' already exists in category '{category}'")
    logger.info("Taxonomy term created: %s (%s/%s)", term.id, category, label)
    return term


async def update_term(db: AsyncSession, term_id: Any, body: Dict[str, Any]) -> Taxonomy:
    term = await get_term(db, term_id)

    for field in ("category", "term"):
        if field in body:
            value = norm_str(body[field])
            if not value:
                raise PayloadValidationError(f"{field.capitalize()} cannot be empty")
            setattr(term, field, value)
    if "slug" in body:
        term.slug = norm_str(body["slug"])
    if "description" in body:
        term.description = norm_str(body["description"])
    if isinstance(body.get("isActive"), bool):
        term.is_active = body["isActive"]

    await _commit_or_conflict(db, term, f"Term '{term.term}' already exists in category '{term.category}'")
    logger.info("Taxonomy term updated: %s", term.id)
    return term


async def delete_term(db: AsyncSession, term_id: Any) -> None:
    """Delete a term and the persona links pointing at it."""
    term = await get_term(db, term_id)
    await db.execute(delete(PersonaTaxonomy).where(PersonaTaxonomy.taxonomy_id == term.id))
    await db.execute(delete(Taxonomy).where(Taxonomy.id == term.id))
    await db.commit()
    logger.info("Taxonomy term deleted: %s", term.id)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def _category_name(body: Dict[str, Any]) -> str:
    # Admin form sends fullName; older clients send name
    name = norm_str(body.get("fullName")) or norm_str(body.get("name"))
    if not name:
        raise PayloadValidationError("Name is required")
    return name


async def list_categories(db: AsyncSession, page: Any = None, page_size: Any = None) -> Dict[str, Any]:
    page, page_size = clamp_pagination(page, page_size)
    total = await db.scalar(select(func.count()).select_from(TaxonomyCategory))
    result = await db.execute(
        select(TaxonomyCategory)
        .order_by(TaxonomyCategory.full_name.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return {
        "items": list(result.scalars().all()),
        "total": total or 0,
        "page": page,
        "page_size": page_size,
    }


async def get_category(db: AsyncSession, category_id: Any) -> TaxonomyCategory:
    category_uuid = parse_uuid(category_id, "category_id")
    category = await db.get(TaxonomyCategory, category_uuid)
    if category is None:
        raise LookupError(f"Taxonomy category {category_id} not found")
    return category


async def create_category(db: AsyncSession, body: Dict[str, Any]) -> TaxonomyCategory:
    category = TaxonomyCategory(
        full_name=_category_name(body),
        key=norm_str(body.get("key")),
        description=norm_str(body.get("description")),
    )
    db.add(category)
    await _commit_or_conflict(db, category, "A category with this name already exists")
    logger.info("Taxonomy category created: %s (%s)", category.id, category.full_name)
    return category


async def update_category(db: AsyncSession, category_id: Any, body: Dict[str, Any]) -> TaxonomyCategory:
    category = await get_category(db, category_id)
    category.full_name = _category_name(body)
    if "key" in body:
        category.key = norm_str(body["key"])
    category.description = norm_str(body.get("description"))

    await _commit_or_conflict(db, category, "A category with this name already exists")
    logger.info("Taxonomy category updated: %s", category.id)
    return category


async def delete_category(db: AsyncSession, category_id: Any) -> None:
    category = await get_category(db, category_id)
    await db.execute(delete(TaxonomyCategory).where(TaxonomyCategory.id == category.id))
    await db.commit()
    logger.info("Taxonomy category deleted: %s", category.id)
