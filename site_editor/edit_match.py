"""Search match strategies for locating a model's BEFORE text in a document.

Strategies: exact, trailing_whitespace, normalized_window.
Each strategy returns the (start, end) spans it would replace, or an empty list.
"""

import re
from typing import Callable, List, Optional, Tuple

Span = Tuple[int, int]


def _all_occurrences(doc: str, needle: str) -> List[Span]:
    spans: List[Span] = []
    if not needle:
        return spans
    start = 0
    while True:
        idx = doc.find(needle, start)
        if idx == -1:
            break
        spans.append((idx, idx + len(needle)))
        start = idx + len(needle)
    return spans


def rstrip_lines(text: str) -> str:
    return "\n".join(line.rstrip() for line in text.split("\n"))


def normalize_for_match(text: str) -> str:
    """Collapse whitespace runs, drop trailing spaces, collapse blank-line runs."""
    lines = [re.sub(r"\s+", " ", line.rstrip()) for line in text.split("\n")]
    return re.sub(r"\n\s*\n", "\n", "\n".join(lines))


def _exact_match(doc: str, search: str) -> List[Span]:
    """Every literal occurrence."""
    return _all_occurrences(doc, search)


def _trailing_whitespace_match(doc: str, search: str) -> List[Span]:
    """Every occurrence of search with each line right-trimmed (model dropped/added trailing spaces)."""
    trimmed = rstrip_lines(search)
    if trimmed == search:
        return []
    return _all_occurrences(doc, trimmed)


def _normalized_window_match(doc: str, search: str) -> List[Span]:
    """First window of len(search lines) document lines whose normalized form equals normalized search."""
    target = normalize_for_match(search)
    if not target.strip():
        return []
    doc_lines = doc.split("\n")
    window = len(search.split("\n"))
    offsets = [0]
    for line in doc_lines:
        offsets.append(offsets[-1] + len(line) + 1)
    for i in range(0, len(doc_lines) - window + 1):
        chunk = "\n".join(doc_lines[i:i + window])
        if normalize_for_match(chunk) == target:
            start = offsets[i]
            return [(start, start + len(chunk))]
    return []


# Order matters: each later strategy trades precision for tolerance.
MATCH_STRATEGIES: List[Tuple[str, Callable[[str, str], List[Span]]]] = [
    ("exact", _exact_match),
    ("trailing_whitespace", _trailing_whitespace_match),
    ("normalized_window", _normalized_window_match),
]


def find_search_matches(doc: str, search: str) -> Optional[Tuple[str, List[Span]]]:
    """Return (strategy_name, spans) for the first strategy that matches, or None.

    Empty or whitespace-only search text never matches.
    """
    if not (search or "").strip():
        return None
    for name, strategy in MATCH_STRATEGIES:
        spans = strategy(doc, search)
        if spans:
            return name, spans
    return None


def replace_spans(doc: str, spans: List[Span], replacement: str) -> str:
    """Replace non-overlapping spans, back to front so offsets stay valid."""
    result = doc
    for start, end in sorted(spans, reverse=True):
        result = result[:start] + replacement + result[end:]
    return result
