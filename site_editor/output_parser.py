"""Extract a proposed change from free-text model replies.

Tries in order: labeled BEFORE/AFTER blocks, OLD/NEW (REPLACE/WITH) blocks,
two unlabeled :root blocks, a complete HTML document, a bare CSS block.
Each stage returns None when it does not recognize the reply.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from . import config
from .document import find_style_block, is_complete_document
from .utils import dbg

DIFF = "diff"
FULL_DOCUMENT = "full_document"
CSS_BLOCK = "css_block"

_FENCE = r"```[\w+-]*\s*([\s\S]*?)```"
FENCE_BLOCK_RE = re.compile(_FENCE)


def _labeled_block_re(labels: str) -> re.Pattern:
    # Tolerates markdown bold around the label: **BEFORE:**
    return re.compile(rf"\**\b(?:{labels})\**\s*:\s*\**\s*" + _FENCE, re.IGNORECASE)


BEFORE_RE = _labeled_block_re("BEFORE")
AFTER_RE = _labeled_block_re("AFTER")
OLD_RE = _labeled_block_re("OLD|REPLACE")
NEW_RE = _labeled_block_re("NEW|WITH")
# Label directly in front of a fence: "BEFORE:" / "**Old:**"
OLD_LABEL_RE = re.compile(r"\**\b(?:BEFORE|OLD|REPLACE)\**\s*:\s*\**\s*$", re.IGNORECASE)

CSS_RULE_RE = re.compile(r"[.#:\w\-\]\)*]\s*\{")
HTML_TAG_RE = re.compile(r"<[a-zA-Z!/]")


@dataclass(frozen=True)
class ProposedPatch:
    kind: str
    before: str = ""
    after: str = ""
    full_document: str = ""
    css_block: str = ""

    @classmethod
    def diff(cls, before: str, after: str) -> "ProposedPatch":
        return cls(kind=DIFF, before=before, after=after)

    @classmethod
    def document(cls, html: str) -> "ProposedPatch":
        return cls(kind=FULL_DOCUMENT, full_document=html)

    @classmethod
    def css(cls, block: str) -> "ProposedPatch":
        return cls(kind=CSS_BLOCK, css_block=block)


def fenced_blocks(reply: str) -> List[str]:
    return [m.group(1) for m in FENCE_BLOCK_RE.finditer(reply or "")]


def _labeled_pair(reply: str, before_re: re.Pattern, after_re: re.Pattern) -> Optional[Tuple[str, str]]:
    before = before_re.search(reply)
    after = after_re.search(reply)
    if not (before and after):
        return None
    return before.group(1).strip(), after.group(1).strip()


def parse_diff(reply: str) -> Optional[ProposedPatch]:
    """BEFORE/AFTER, then OLD|REPLACE / NEW|WITH, then two unlabeled :root blocks."""
    text = (reply or "").replace("\r\n", "\n")
    for before_re, after_re in ((BEFORE_RE, AFTER_RE), (OLD_RE, NEW_RE)):
        pair = _labeled_pair(text, before_re, after_re)
        if pair and pair[0]:
            return ProposedPatch.diff(*pair)

    blocks = fenced_blocks(text)
    if len(blocks) >= 2:
        b1, b2 = blocks[0].strip(), blocks[1].strip()
        if ":root" in b1 and ":root" in b2 and len(b1) > 20 and len(b2) > 20:
            dbg("parse_diff: unlabeled :root pair")
            return ProposedPatch.diff(b1, b2)
    return None


def _cut_document(rest: str) -> str:
    end = re.search(r"</html>\s*", rest, re.IGNORECASE)
    if end:
        return rest[: end.end()].strip()
    return rest.strip()


def extract_full_document(reply: str) -> Optional[str]:
    """Find a complete HTML document in a ```html block, any block, or bare text.

    Fragments (an ```html block without a doctype or <html> root) are not documents.
    """
    text = reply or ""
    for m in re.finditer(r"```html\s*([\s\S]*?)```", text, re.IGNORECASE):
        body = m.group(1).strip()
        if is_complete_document(body):
            return body
    blocks = fenced_blocks(text)
    for marker in (r"<!DOCTYPE", r"<html"):
        for block in blocks:
            start = re.search(marker, block, re.IGNORECASE)
            if start:
                return _cut_document(block[start.start():])

    for marker in (r"<!DOCTYPE\s+html", r"<html[\s>]"):
        start = re.search(marker, text, re.IGNORECASE)
        if start:
            return _cut_document(text[start.start():])
    return None


def is_plausible_full_document(candidate: str, current_doc: str) -> bool:
    """Reject a fragment or a 'full document' drastically smaller than the page (truncated)."""
    if not is_complete_document(candidate):
        return False
    if not current_doc:
        return True
    return len(candidate) >= len(current_doc) * config.FULL_DOC_MIN_RATIO


def extract_css_block(reply: str) -> Optional[str]:
    """Find the last fenced block that looks like CSS (:root or selector rules), else a bare :root block.

    Blocks labeled BEFORE/OLD/REPLACE hold the values being replaced and are skipped.
    """
    text = reply or ""
    min_chars = config.CSS_BLOCK_MIN_CHARS
    found = None
    prev_end = 0
    for m in FENCE_BLOCK_RE.finditer(text):
        lead, prev_end = text[prev_end:m.start()], m.end()
        body = m.group(1).strip()
        if len(body) < min_chars or OLD_LABEL_RE.search(lead):
            continue
        if ":root" in body:
            found = body
        elif not HTML_TAG_RE.search(body) and CSS_RULE_RE.search(body) and "}" in body:
            found = body
    if found is not None:
        return found
    return find_style_block(FENCE_BLOCK_RE.sub("", text))


def iter_patch_candidates(reply: str) -> Iterator[ProposedPatch]:
    """Yield every recognizable patch in priority order.

    The caller applies them one by one and stops at the first that lands.
    """
    diff = parse_diff(reply)
    if diff is not None:
        yield diff
    html = extract_full_document(reply)
    if html:
        yield ProposedPatch.document(html)
    css = extract_css_block(reply)
    if css:
        yield ProposedPatch.css(css)


def parse_patch(reply: str) -> Optional[ProposedPatch]:
    """Return the highest-priority patch in the reply, or None."""
    for candidate in iter_patch_candidates(reply):
        return candidate
    return None
