"""Extract relevant document fragments for section-scoped edits.

Reduces payload size by sending only the :root block and the targeted
sections. Every fragment is a verbatim slice of the full document.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .classify import COLOR
from .document import find_style_block
from .utils import dbg

# Tags tried, in order, when looking for an element carrying id="<section>".
ID_TAGS = ("div", "section", "header", "footer", "nav")

# Section ids that map to bare semantic tags (no id attribute needed).
SEMANTIC_TAG_MAP: Dict[str, Tuple[str, ...]] = {
    "footer": ("footer",),
    "header": ("header",),
    "navbar": ("nav", "header"),
    "nav": ("nav",),
    "hero": ("header",),
}


@dataclass(frozen=True)
class ExtractedContext:
    context: str
    full_doc: str


def _tag_token_re(tag: str) -> re.Pattern:
    # group(1) is "/" for a close tag; group(2) is "/" for a self-closing open tag
    return re.compile(rf"<(/?){tag}(?:\s[^>]*?)?\s*(/?)>", re.IGNORECASE)


def element_span(doc: str, tag: str, open_start: int, open_end: int) -> Optional[Tuple[int, int]]:
    """Return (start, end) of the element whose open tag spans doc[open_start:open_end].

    Counts nested open/close tags of the same name so that a <header> holding
    another <header> yields the outer element, not the first </header>.
    """
    depth = 1
    for m in _tag_token_re(tag).finditer(doc, open_end):
        if m.group(1):
            depth -= 1
            if depth == 0:
                return (open_start, m.end())
        elif not m.group(2):
            depth += 1
    return None


def find_element_by_id(doc: str, section_id: str, tags: Sequence[str] = ID_TAGS) -> Optional[Tuple[str, str]]:
    """Find the first element among `tags` with id="section_id". Returns (tag, html) or None."""
    ident = re.escape(section_id)
    for tag in tags:
        open_re = re.compile(
            rf"<{tag}\b[^>]*\sid\s*=\s*[\"']{ident}[\"'][^>]*>",
            re.IGNORECASE,
        )
        m = open_re.search(doc)
        if not m:
            continue
        span = element_span(doc, tag, m.start(), m.end())
        if span:
            return tag, doc[span[0]:span[1]]
    return None


def find_semantic_element(doc: str, section_id: str) -> Optional[Tuple[str, str]]:
    """Fall back to a bare semantic tag (e.g. <footer> without id="footer")."""
    for tag in SEMANTIC_TAG_MAP.get(section_id.lower(), ()):
        m = re.search(rf"<{tag}(?:\s[^>]*)?>", doc, re.IGNORECASE)
        if not m:
            continue
        span = element_span(doc, tag, m.start(), m.end())
        if span:
            return tag, doc[span[0]:span[1]]
    return None


def extract_sections(
    doc: str,
    section_ids: Sequence[str],
    scope: str,
) -> Optional[ExtractedContext]:
    """Carve the :root block and the requested sections out of `doc`.

    Returns None when extraction failed and the caller must send the full
    document instead.
    """
    parts: List[str] = []

    # Always include :root (section edits may rely on CSS variables)
    root_block = find_style_block(doc)
    if root_block:
        parts.append("/* :root variables */\n" + root_block)

    found_sections = 0
    for section_id in section_ids:
        hit = find_element_by_id(doc, section_id)
        if hit:
            parts.append(f"\n/* Section: {section_id} */\n{hit[1]}")
            found_sections += 1
            continue
        hit = find_semantic_element(doc, section_id)
        if hit:
            parts.append(f"\n/* Section: {section_id} (matched <{hit[0]}>) */\n{hit[1]}")
            found_sections += 1
        else:
            dbg(f"extract_sections: no element for section={section_id!r}")

    # Color-only with no sections: :root alone is enough
    if scope == COLOR and root_block and not section_ids:
        return ExtractedContext(context="\n\n".join(parts), full_doc=doc)

    if found_sections < 1:
        return None

    dbg(f"extract_sections: {found_sections}/{len(section_ids)} section(s), root={'yes' if root_block else 'no'}")
    return ExtractedContext(context="\n\n".join(parts), full_doc=doc)
