"""
Persona description generation.

Sends the persona's attributes to a chat-completions endpoint and falls back
to a deterministic local template when no API key is configured, the call
fails, or the model returns nothing. Callers always get a non-empty string.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from voxarena_backend.services.llm_client import extract_message_text, get_chat_client
from voxarena_backend.services.llm_config import get_env_llm_defaults
from voxarena_backend.services.taxonomy_links import terms_in_categories

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You write concise, vivid persona descriptions (140-220 words).
Audience: general readers on a profile page.
Tone: evocative but grounded; avoid cliches and overstatement.
Perspective: third-person.
Avoid lists; write a single flowing paragraph."""


@dataclass
class PersonaProfile:
    name: str
    nickname: Optional[str] = None
    profession: Optional[str] = None
    cultural_background: Optional[str] = None
    education: Optional[str] = None
    worldview: Optional[str] = None
    temperament: Optional[str] = None
    conflict_style: Optional[str] = None
    vocabulary_style: Optional[str] = None
    debate_approach: List[str] = field(default_factory=list)
    quirks: List[str] = field(default_factory=list)
    expertise: List[str] = field(default_factory=list)


def _joined(terms: List[str]) -> Optional[str]:
    return ", ".join(terms) if terms else None


def build_persona_profile(persona: Any, taxonomies: List[Any]) -> PersonaProfile:
    """Collect the prompt inputs from a persona row and the taxonomy terms it is tagged with."""
    return PersonaProfile(
        name=persona.name,
        nickname=persona.nickname,
        profession=persona.profession,
        cultural_background=_joined(terms_in_categories(taxonomies, "culture", "region")),
        education=_joined(terms_in_categories(taxonomies, "university")),
        worldview=_joined(terms_in_categories(taxonomies, "philosophy", "political")),
        temperament=persona.temperament,
        conflict_style=persona.conflict_style,
        vocabulary_style=persona.vocabulary_style,
        debate_approach=list(persona.debate_approach or []),
        quirks=list(persona.quirks or []),
        expertise=terms_in_categories(taxonomies, "university", "organization", "employer", "philosophy"),
    )


def _display_name(profile: PersonaProfile) -> str:
    if profile.nickname:
        return f"{profile.name} (“{profile.nickname}”)"
    return profile.name


def build_prompt(profile: PersonaProfile) -> str:
    lines = [f"Name: {_display_name(profile)}"]
    if profile.cultural_background:
        lines.append(f"Cultural background: {profile.cultural_background}")
    if profile.profession:
        lines.append(f"Profession: {profile.profession}")
    if profile.education:
        lines.append(f"Education: {profile.education}")
    if profile.worldview:
        lines.append(f"Worldview: {profile.worldview}")
    if profile.temperament:
        lines.append(f"Temperament: {profile.temperament}")
    if profile.conflict_style:
        lines.append(f"Conflict style: {profile.conflict_style}")
    if profile.vocabulary_style:
        lines.append(f"Vocabulary style: {profile.vocabulary_style}")
    if profile.debate_approach:
        lines.append(f"Debate approach: {'; '.join(profile.debate_approach)}")
    if profile.quirks:
        lines.append(f"Quirks: {'; '.join(profile.quirks)}")
    if profile.expertise:
        lines.append(f"Expertise: {'; '.join(profile.expertise)}")

    return "\n".join([
        "Write a 140-220 word profile description for an AI debate persona using the details below.",
        "Do NOT use bullet points or headings. One paragraph only.",
        "Avoid repeating the name more than twice.",
        "",
        "\n".join(lines),
    ])


def fallback_description(profile: PersonaProfile) -> str:
    """Deterministic offline description built from the same fields as the prompt."""
    bits = [
        part for part in (
            profile.profession and f"a {profile.profession}",
            profile.cultural_background and f"rooted in {profile.cultural_background}",
            profile.education and f"educated at {profile.education}",
            profile.worldview and f"guided by a {profile.worldview} worldview",
        ) if part
    ]
    intro = f"{_display_name(profile)} is {', '.join(bits) if bits else 'a debate persona'}."

    if profile.debate_approach:
        approach = f"In debates, their approach is {', '.join(profile.debate_approach)}."
    else:
        approach = "In debates, they balance clarity with curiosity."

    style = " · ".join(
        part for part in (
            profile.temperament and f"Temperament: {profile.temperament}",
            profile.conflict_style and f"Conflict style: {profile.conflict_style}",
            profile.vocabulary_style and f"Vocabulary: {profile.vocabulary_style}",
        ) if part
    )

    extras = " ".join(
        part for part in (
            profile.quirks and f"Quirks: {', '.join(profile.quirks)}.",
            profile.expertise and f"Areas of focus: {', '.join(profile.expertise)}.",
        ) if part
    )

    return " ".join(part for part in (intro, approach, style and f"{style}.", extras) if part)


async def generate_persona_description(
    profile: PersonaProfile,
    config: Optional[Dict[str, Any]] = None,
) -> str:
    """Model-written description, or the fallback. Never raises."""
    resolved = config or get_env_llm_defaults()
    if not resolved.get("api_key"):
        logger.info("No description API key configured; using fallback for %s", profile.name)
        return fallback_description(profile)

    try:
        client = get_chat_client(resolved)
        response = await client.chat(
            model=resolved.get("chat_model"),
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(profile)},
            ],
            temperature=resolved.get("temperature", 0.7),
            max_tokens=resolved.get("max_tokens", 600),
        )
    except Exception as exc:
        logger.error("Description request failed for %s: %s", profile.name, exc)
        return fallback_description(profile)

    text = extract_message_text(response)
    if not text:
        logger.warning("Description model returned empty content for %s; using fallback", profile.name)
        return fallback_description(profile)
    return text
