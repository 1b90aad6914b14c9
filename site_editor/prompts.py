"""Prompt construction for AI page edits.

The system prompt is assembled from rule blocks in templates/rules.py; each
optional block is included only when the request scope or wording calls for it.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from . import config
from .classify import COLOR, FULL, ScopeClassification, is_color_request
from .templates.rules import (
    ANIMATION_RULES,
    COLOR_RULES,
    CORE_RULES,
    DESIGN_PRINCIPLES,
    FORM_RULES,
    OUTPUT_FORMAT_RULES,
    SCOPED_EDIT_RULES,
    SECTION_PATTERN_RULES,
)

FORM_KEYWORDS = re.compile(
    r"\b(form|contact|quote|newsletter|subscribe|message|enquiry|inquiry|booking)\b", re.IGNORECASE
)
DESIGN_KEYWORDS = re.compile(
    r"\b(design|layout|modern|style|look|professional|clean|spacing|responsive|mobile)\b", re.IGNORECASE
)
ADD_SECTION_KEYWORDS = re.compile(
    r"\b(add|insert|create|new)\b[^.\n]{0,40}\b(section|block|banner|faq|stats|gallery|pricing)\b", re.IGNORECASE
)
ANIMATION_KEYWORDS = re.compile(
    r"\b(animat\w*|transition\w*|fade|slide|hover\s*effect|scroll\w*|parallax|bounce|motion)\b", re.IGNORECASE
)

# Tailwind color utilities on clickable elements (buttons, links)
CLICKABLE_TAG_RE = re.compile(r"<(a|button)\b[^>]*\bclass\s*=\s*[\"']([^\"']*)[\"']", re.IGNORECASE)
TAILWIND_COLOR_CLASS_RE = re.compile(
    r"(?<![\w-])((?:[a-z]+:)*(?:bg|text|border|ring|from|to|via)-"
    r"(?:slate|gray|zinc|neutral|stone|red|orange|amber|yellow|lime|green|emerald|teal|cyan|sky|blue|"
    r"indigo|violet|purple|fuchsia|pink|rose)-\d{2,3})(?![\w-])"
)


def select_rule_blocks(
    prompt: str,
    classification: ScopeClassification,
    extracted: bool,
) -> List[Tuple[str, str]]:
    """Return (name, text) rule blocks for this request, core rules first."""
    text = prompt or ""
    blocks: List[Tuple[str, str]] = [("core", CORE_RULES), ("output_format", OUTPUT_FORMAT_RULES)]
    if extracted:
        blocks.append(("scoped_edit", SCOPED_EDIT_RULES))
    if classification.scope == COLOR or is_color_request(text):
        blocks.append(("color", COLOR_RULES))
    if FORM_KEYWORDS.search(text) or "contact" in classification.section_ids:
        blocks.append(("forms", FORM_RULES))
    if classification.scope == FULL or DESIGN_KEYWORDS.search(text):
        blocks.append(("design", DESIGN_PRINCIPLES))
    if ADD_SECTION_KEYWORDS.search(text):
        blocks.append(("section_patterns", SECTION_PATTERN_RULES))
    if ANIMATION_KEYWORDS.search(text):
        blocks.append(("animation", ANIMATION_RULES))
    return blocks


def build_system_prompt(prompt: str, classification: ScopeClassification, extracted: bool) -> str:
    return "\n\n".join(text for _name, text in select_rule_blocks(prompt, classification, extracted))


def format_image_context(images: Optional[Iterable[Dict[str, Any]]]) -> str:
    lines = []
    for img in images or []:
        if not isinstance(img, dict):
            continue
        name = str(img.get("name") or "").strip()
        url = str(img.get("url") or "").strip()
        if name and url:
            lines.append(f'  - "{name}" -> {url}')
    if not lines:
        return ""
    return (
        "\n\nThe user has uploaded these images. When they mention an image by name, "
        "use the matching URL as the <img src>:\n" + "\n".join(lines)
    )


def build_user_content(
    document: str,
    prompt: str,
    images: Optional[Iterable[Dict[str, Any]]] = None,
    extracted: bool = False,
) -> str:
    if extracted:
        head = "Here are the relevant parts of the current HTML document:\n\n"
    else:
        head = "Here is the current HTML document:\n\n"
    request = (prompt or "").strip()[: config.MAX_PROMPT_CHARS]
    return f"{head}{document}{format_image_context(images)}\n\nUser request: {request}"


def build_messages(
    system_prompt: str,
    user_content: str,
    history: Optional[Sequence[Dict[str, Any]]] = None,
) -> List[Dict[str, str]]:
    """system, then the most recent user/assistant turns, then the new request."""
    turns: List[Dict[str, str]] = []
    for msg in history or []:
        if not isinstance(msg, dict):
            continue
        role = str(msg.get("role") or "").strip().lower()
        content = msg.get("content")
        if role not in ("user", "assistant") or not isinstance(content, str) or not content.strip():
            continue
        turns.append({"role": role, "content": content})
    limit = max(0, config.MAX_HISTORY_MESSAGES)
    turns = turns[-limit:] if limit else []
    return (
        [{"role": "system", "content": system_prompt}]
        + turns
        + [{"role": "user", "content": user_content}]
    )


def find_clickable_color_classes(doc: str) -> List[str]:
    """Tailwind color classes used on <a>/<button> elements, in document order, de-duplicated."""
    found: List[str] = []
    for m in CLICKABLE_TAG_RE.finditer(doc or ""):
        for cls in TAILWIND_COLOR_CLASS_RE.findall(m.group(2)):
            if cls not in found:
                found.append(cls)
    return found


def build_fallback_prompt(prompt: str, doc: str) -> str:
    """Simplified, directive request used for the single color retry."""
    classes = find_clickable_color_classes(doc)
    lines = [
        f"The user asked: {(prompt or '').strip()[: config.MAX_PROMPT_CHARS]}",
        "",
        "Make ONLY this color change. Answer with BEFORE/AFTER blocks copied exactly from the document.",
        "1. Update the :root { ... } variables if the page has them.",
    ]
    if classes:
        lines.append(
            "2. Replace EVERY one of these button/link color classes with the new color "
            "(use Tailwind arbitrary values such as bg-[#001B2E]):"
        )
        lines.extend(f"   - {cls}" for cls in classes)
    else:
        lines.append("2. Update the color classes or inline styles of every button and link.")
    lines.append("Do not change anything else. Do not return the full document.")
    return "\n".join(lines)
