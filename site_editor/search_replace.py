"""Apply proposed patches to a document.

Targeted BEFORE/AFTER replacement goes through the edit_match strategies and
falls back to selector-level CSS rule replacement. Nothing here mutates its
input: every function returns a new document string or None.
"""

import re
from typing import List, Optional, Tuple

from .document import STYLE_BLOCK_RE, find_style_block
from .edit_match import find_search_matches, replace_spans
from .output_parser import CSS_BLOCK, DIFF, FULL_DOCUMENT, ProposedPatch, is_plausible_full_document
from .utils import dbg

# selector { declarations }
CSS_RULE_RE = re.compile(r"([.#\w\s\-:\],()>*+~=\"'\[]+?)\s*\{([^{}]*)\}")


def parse_css_rules(css: str) -> List[Tuple[str, str]]:
    """Split a CSS snippet into (selector, full_rule_text) pairs."""
    rules: List[Tuple[str, str]] = []
    for m in CSS_RULE_RE.finditer(css or ""):
        selector = m.group(1).strip()
        if len(selector) > 1:
            rules.append((selector, m.group(0).strip()))
    return rules


def apply_css_rules(doc: str, css: str) -> Optional[str]:
    """Replace, per selector in `css`, the first rule in `doc` with the same selector.

    Used when the model's BEFORE text drifted from the document (e.g. it guessed
    color:#333 where the page has color:var(--color-text)). None if nothing changed.
    """
    rules = parse_css_rules(css)
    if not rules:
        return None
    result = doc
    for selector, full in rules:
        doc_rule = re.compile(re.escape(selector) + r"\s*\{[^{}]*\}")
        m = doc_rule.search(result)
        if m:
            result = result[:m.start()] + full + result[m.end():]
        else:
            dbg(f"apply_css_rules: selector not in document: {selector[:60]!r}")
    return None if result == doc else result


def _looks_like_css_rules(text: str) -> bool:
    return "{" in text and "}" in text


def apply_patch_with_strategy(doc: str, before: str, after: str) -> Optional[Tuple[str, str]]:
    """Locate `before` in `doc` and replace it with `after`. Returns (document, strategy) or None."""
    hit = find_search_matches(doc, before)
    if hit:
        name, spans = hit
        dbg(f"apply_patch: strategy={name} spans={len(spans)}")
        return replace_spans(doc, spans, after), name
    if _looks_like_css_rules(before) and _looks_like_css_rules(after):
        patched = apply_css_rules(doc, after)
        if patched is not None:
            dbg("apply_patch: strategy=css_rules")
            return patched, "css_rules"
    return None


def apply_patch(doc: str, before: str, after: str) -> Optional[str]:
    """Return the patched document, or None when `before` cannot be located."""
    hit = apply_patch_with_strategy(doc, before, after)
    return hit[0] if hit else None


def apply_css_block(doc: str, css_block: str) -> Optional[str]:
    """Apply a bare CSS reply: swap the :root block, else replace rules by selector."""
    new_root = find_style_block(css_block)
    old_root = STYLE_BLOCK_RE.search(doc or "")
    if new_root and old_root:
        patched = doc[:old_root.start()] + new_root + doc[old_root.end():]
        if patched != doc:
            return patched
    return apply_css_rules(doc, css_block)


def apply_proposed_patch(doc: str, patch: ProposedPatch) -> Optional[Tuple[str, str]]:
    """Apply one parsed patch. Returns (document, strategy) or None.

    A patch that leaves the document byte-identical counts as not applied.
    """
    result: Optional[Tuple[str, str]] = None
    if patch.kind == DIFF:
        if patch.before.strip():
            result = apply_patch_with_strategy(doc, patch.before, patch.after)
    elif patch.kind == FULL_DOCUMENT:
        if is_plausible_full_document(patch.full_document, doc):
            result = (patch.full_document, "full_document")
        else:
            dbg(
                f"apply_proposed_patch: not a complete page or too small "
                f"({len(patch.full_document)} vs {len(doc)} chars), skipping"
            )
    elif patch.kind == CSS_BLOCK:
        patched = apply_css_block(doc, patch.css_block)
        if patched is not None:
            result = (patched, "css_block")
    if result is None or result[0] == doc:
        return None
    return result
