"""Classify edit requests into a scope and the page sections they touch.

Used to decide how much of the page the model needs to see.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

COLOR = "color"
SECTION = "section"
FULL = "full"

COLOR_KEYWORDS = re.compile(
    r"\b(color|colour|palette|navy|blue|green|red|orange|purple|teal|scheme|theme|hex)\b"
    r"|#[0-9a-f]{3,6}\b",
    re.IGNORECASE,
)

# Ordered: section ids are reported in this order.
SECTION_KEYWORDS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"\b(testimonials?|reviews?|client\s*says?|ratings?)\b", re.IGNORECASE), "testimonials"),
    (re.compile(r"\b(hero|banner|header\s*section)\b", re.IGNORECASE), "hero"),
    (re.compile(r"\b(about|about\s*us)\b", re.IGNORECASE), "about"),
    (re.compile(r"\b(service|services)\b", re.IGNORECASE), "services"),
    (re.compile(r"\b(contact|get\s*(a\s*)?quote|quote\s*form)\b", re.IGNORECASE), "contact"),
    (re.compile(r"\b(footer)\b", re.IGNORECASE), "footer"),
    (re.compile(r"\b(navbar|nav\s*bar|navigation)\b", re.IGNORECASE), "navbar"),
)

FULL_SCOPE_KEYWORDS = re.compile(
    r"\b(restructure|redesign|add\s*(a\s*)?section|remove\s*(the\s*)?section|full\s*page|entire\s*page)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ScopeClassification:
    scope: str
    section_ids: Tuple[str, ...] = ()


def is_color_request(prompt: str) -> bool:
    return bool(COLOR_KEYWORDS.search((prompt or "").strip()))


def is_structural_request(prompt: str) -> bool:
    return bool(FULL_SCOPE_KEYWORDS.search((prompt or "").strip()))


def match_section_ids(prompt: str) -> Tuple[str, ...]:
    lower = (prompt or "").lower().strip()
    ids = []
    for pattern, section_id in SECTION_KEYWORDS:
        if pattern.search(lower) and section_id not in ids:
            ids.append(section_id)
    return tuple(ids)


def classify(prompt: str) -> ScopeClassification:
    """Classify a request.

    Priority order:
      structural (always FULL) > COLOR (with any section ids) > SECTION > FULL
    """
    lower = (prompt or "").lower().strip()

    # Structural edits always see the whole document, even "redesign the color scheme".
    if FULL_SCOPE_KEYWORDS.search(lower):
        return ScopeClassification(FULL)

    section_ids = match_section_ids(lower)
    if COLOR_KEYWORDS.search(lower):
        return ScopeClassification(COLOR, section_ids)
    if section_ids:
        return ScopeClassification(SECTION, section_ids)
    return ScopeClassification(FULL)


def apply_section_hint(
    classification: ScopeClassification,
    section_id: Optional[str],
    structural: bool = False,
) -> ScopeClassification:
    """Merge a caller-selected section into a classification.

    The hint goes first. A FULL result is narrowed to SECTION unless the request
    was structural.
    """
    hint = (section_id or "").strip()
    if not hint or structural:
        return classification
    ids = (hint,) + tuple(s for s in classification.section_ids if s != hint)
    scope = classification.scope
    if scope == FULL:
        scope = SECTION
    return ScopeClassification(scope, ids)
