"""
Normalization of loosely-typed JSON request bodies.

Every persona/debate endpoint accepts whatever the UI sends and coerces it
into column values here. Two "empty" states are distinguished:

- ``UNSET``: the field was not submitted, so a partial update leaves the
  column alone.
- ``None``: the field was submitted blank or with the wrong type, so the
  column is cleared.
"""

import math
import re
from typing import Any, Dict, List, Optional

from voxarena_backend.models import DEBATE_FORMATS, DEBATE_STATUSES, PARTICIPANT_ROLES
from voxarena_backend.services.errors import PayloadValidationError


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

QUIRK_DELIMITERS = re.compile(r"\r?\n|,|;|•")

DEBATE_CONFIG_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "structured": {
        "rounds": 3,
        "openingStatementSeconds": 120,
        "rebuttalSeconds": 90,
        "closingStatementSeconds": 60,
        "allowAudienceQuestions": False,
    },
    "podcast": {
        "segments": 3,
        "segmentMinutes": 10,
        "introMinutes": 2,
        "allowCrosstalk": True,
    },
}

# (column, accepted body keys in precedence order, kind)
PERSONA_FIELDS = (
    ("name", ("name",), "name"),
    ("nickname", ("nickname",), "str"),
    ("age_group", ("ageGroup",), "str"),
    ("gender_identity", ("genderIdentity", "gender"), "str"),
    ("pronouns", ("pronouns",), "str"),
    ("profession", ("profession",), "str"),
    ("temperament", ("temperament",), "str"),
    ("confidence", ("confidence",), "scale"),
    ("verbosity", ("verbosity",), "scale"),
    ("tone", ("tone",), "str"),
    ("vocabulary_style", ("vocabularyStyle", "vocabulary"), "str"),
    ("conflict_style", ("conflictStyle",), "str"),
    ("accent_note", ("accentNote",), "str"),
    ("voice_provider", ("voiceProvider",), "str"),
    ("voice_style", ("voiceStyle",), "json"),
    ("debate_approach", ("debateApproach", "approach"), "str_list"),
    ("emotion_map", ("emotionMap",), "str_list"),
    ("avatar_url", ("avatarUrl",), "str"),
    ("description", ("description",), "str"),
)


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def norm_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def norm_opt_str(value: Any) -> Any:
    normalized = norm_str(value)
    return UNSET if normalized is None else normalized


def norm_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def clamp_scale(value: Any, low: int = 0, high: int = 10) -> Optional[int]:
    """Parse a 0-10 slider value; numeric strings are accepted too."""
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    number = norm_int(value)
    if number is None:
        return None
    return max(low, min(high, number))


def norm_string_array(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def normalize_quirks(body: Dict[str, Any]) -> Any:
    """Accept ``quirks`` as a list, or ``quirksText`` as delimited free text."""
    from_list = norm_string_array(body.get("quirks"))
    if from_list is not None:
        return from_list

    text = body.get("quirksText")
    if isinstance(text, str):
        return [part.strip() for part in QUIRK_DELIMITERS.split(text) if part.strip()]
    return UNSET


def _first_present_key(body: Dict[str, Any], keys) -> Optional[str]:
    for key in keys:
        if key in body:
            return key
    return None


def _coerce(kind: str, value: Any) -> Any:
    if kind == "name":
        return norm_opt_str(value)
    if kind == "str":
        return norm_str(value)
    if kind == "scale":
        return clamp_scale(value)
    if kind == "str_list":
        return norm_string_array(value)
    return value  # json: pass through untouched


# ---------------------------------------------------------------------------
# Personas
# ---------------------------------------------------------------------------

def normalize_persona_update(body: Dict[str, Any]) -> Dict[str, Any]:
    """Column values for the fields present in ``body``; absent fields are omitted."""
    data: Dict[str, Any] = {}
    for column, keys, kind in PERSONA_FIELDS:
        key = _first_present_key(body, keys)
        if key is None:
            continue
        value = _coerce(kind, body[key])
        if value is not UNSET:
            data[column] = value

    quirks = normalize_quirks(body)
    if quirks is not UNSET:
        data["quirks"] = quirks
    elif "quirks" in body:
        data["quirks"] = None
    return data


def normalize_persona_create(body: Dict[str, Any]) -> Dict[str, Any]:
    data = normalize_persona_update(body)
    if not data.get("name"):
        raise PayloadValidationError("Name is required")
    return data


# ---------------------------------------------------------------------------
# Debates
# ---------------------------------------------------------------------------

def _normalize_format(value: Any) -> str:
    fmt = (norm_str(value) or "").lower()
    if fmt not in DEBATE_FORMATS:
        raise PayloadValidationError(f"Format must be one of: {', '.join(DEBATE_FORMATS)}")
    return fmt


def _normalize_status(value: Any) -> str:
    status = (norm_str(value) or "").upper()
    if status not in DEBATE_STATUSES:
        raise PayloadValidationError(f"Status must be one of: {', '.join(DEBATE_STATUSES)}")
    return status


def normalize_participants(body: Dict[str, Any]) -> Any:
    """
    Participant rows from ``body["participants"]``.

    Returns ``UNSET`` when no participants array was submitted. Every entry
    must be an object with a persona id and a known role, otherwise the
    whole roster is rejected. ``order`` falls back to the entry's position
    in the submitted list.
    """
    raw = body.get("participants")
    if not isinstance(raw, list):
        return UNSET

    participants = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise PayloadValidationError(f"Participant {index + 1} must be an object")
        persona_id = norm_str(item.get("personaId"))
        if not persona_id:
            raise PayloadValidationError(f"Participant {index + 1} is missing personaId")
        role = (norm_str(item.get("role")) or "").upper()
        if role not in PARTICIPANT_ROLES:
            raise PayloadValidationError(
                f"Participant {index + 1} has invalid role {item.get('role')!r}; "
                f"expected one of: {', '.join(PARTICIPANT_ROLES)}"
            )
        order = norm_int(item.get("order"))
        participants.append({
            "persona_id": persona_id,
            "role": role,
            "order_index": index if order is None else order,
            "display_name": norm_str(item.get("displayName")),
            "voice_id": norm_str(item.get("voiceId")),
            "meta": item.get("meta"),
        })
    return participants


def normalize_debate_create(body: Dict[str, Any]) -> Dict[str, Any]:
    title = norm_str(body.get("title"))
    if not title:
        raise PayloadValidationError("Title is required")
    topic = norm_str(body.get("topic"))
    if not topic:
        raise PayloadValidationError("Topic is required")
    fmt = _normalize_format(body.get("format"))

    config = body.get("config")
    if config is None:
        config = dict(DEBATE_CONFIG_DEFAULTS[fmt])

    return {
        "title": title,
        "topic": topic,
        "description": norm_str(body.get("description")),
        "format": fmt,
        "status": _normalize_status(body["status"]) if body.get("status") else "DRAFT",
        "config": config,
    }


def normalize_debate_update(body: Dict[str, Any]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for field in ("title", "topic"):
        if field in body:
            value = norm_str(body[field])
            if value:
                data[field] = value
    if "description" in body:
        data["description"] = norm_str(body["description"])
    if body.get("format"):
        data["format"] = _normalize_format(body["format"])
    if body.get("status"):
        data["status"] = _normalize_status(body["status"])
    if body.get("config") is not None:
        data["config"] = body["config"]
    return data
