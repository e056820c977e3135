"""
Persona <-> taxonomy link resolution and the legacy flat-field projection.

The persona wizard posts taxonomy selections either as one flat
``taxonomyIds`` list or as one field per form control (multi-selects like
``archetypeIds`` and single-selects like ``politicalId``). Older consumers
read single fields such as ``universityId`` back, so those are derived from
the link set on every read.
"""

from typing import Any, Dict, Iterable, List, Optional

from voxarena_backend.services.request_normalizer import UNSET, norm_str, norm_string_array


MULTI_SELECT_FIELDS = (
    "archetypeIds",
    "philosophyIds",
    "fillerPhraseIds",
    "metaphorIds",
    "debateHabitIds",
    "cultureIds",
)

# Each entry lists the current name first, then legacy aliases for the same control
SINGLE_SELECT_FIELDS = (
    ("cultureId", "regionId"),
    ("communityTypeId",),
    ("politicalId",),
    ("religionId",),
    ("accentId",),
    ("universityId",),
    ("organizationId", "employerId"),
)


def _dedupe(ids: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for taxonomy_id in ids:
        if taxonomy_id not in seen:
            seen.add(taxonomy_id)
            ordered.append(taxonomy_id)
    return ordered


def _explicit_taxonomy_ids(body: Dict[str, Any]) -> Optional[List[str]]:
    ids = norm_string_array(body.get("taxonomyIds"))
    if ids is not None:
        return ids

    # Older shape: {"taxonomies": {"create": [{"taxonomyId": ...}]}}
    legacy = body.get("taxonomies")
    if isinstance(legacy, dict) and isinstance(legacy.get("create"), list):
        return [
            item["taxonomyId"].strip()
            for item in legacy["create"]
            if isinstance(item, dict)
            and isinstance(item.get("taxonomyId"), str)
            and item["taxonomyId"].strip()
        ]
    return None


def has_granular_fields(body: Dict[str, Any]) -> bool:
    if any(field in body for field in MULTI_SELECT_FIELDS):
        return True
    return any(alias in body for aliases in SINGLE_SELECT_FIELDS for alias in aliases)


def resolve_taxonomy_ids(body: Dict[str, Any]) -> Any:
    """
    Authoritative list of taxonomy ids for a persona write.

    ``taxonomyIds`` wins outright. Otherwise the per-control fields are
    unioned. Returns ``UNSET`` when the body carries no taxonomy fields at
    all, so an update that doesn't touch tags keeps the existing links.
    """
    explicit = _explicit_taxonomy_ids(body)
    if explicit is not None:
        return _dedupe(explicit)

    if not has_granular_fields(body):
        return UNSET

    collected: List[str] = []
    for field in MULTI_SELECT_FIELDS:
        collected.extend(norm_string_array(body.get(field)) or [])

    for aliases in SINGLE_SELECT_FIELDS:
        for alias in aliases:
            value = norm_str(body.get(alias))
            if value:
                collected.append(value)
                break

    return _dedupe(collected)


def _category_of(link) -> str:
    taxonomy = getattr(link, "taxonomy", None)
    return str(getattr(taxonomy, "category", "") or "").lower()


def project_legacy_fields(links: Iterable[Any]) -> Dict[str, Any]:
    """
    Backward-compatible flat fields derived from a persona's links.

    Category strings are matched case-insensitively by substring, so
    "University", "universityName" and "university" all count.
    """
    projected: Dict[str, Any] = {
        "universityId": None,
        "organizationId": None,
        "employerId": None,
        "regionId": None,
        "cultureIds": [],
    }
    for link in links:
        category = _category_of(link)
        taxonomy_id = str(link.taxonomy_id)
        if "university" in category and projected["universityId"] is None:
            projected["universityId"] = taxonomy_id
        if ("organization" in category or "employer" in category) and projected["organizationId"] is None:
            projected["organizationId"] = taxonomy_id
            projected["employerId"] = taxonomy_id
        if "region" in category and projected["regionId"] is None:
            projected["regionId"] = taxonomy_id
        if "culture" in category:
            projected["cultureIds"].append(taxonomy_id)
    return projected


def terms_in_categories(taxonomies: Iterable[Any], *needles: str) -> List[str]:
    """Display terms of taxonomy rows whose category contains any of ``needles``."""
    terms = []
    for taxonomy in taxonomies:
        category = str(getattr(taxonomy, "category", "") or "").lower()
        if any(needle in category for needle in needles) and taxonomy.term:
            terms.append(taxonomy.term)
    return terms
