"""Safety checks for model-produced page content.

Pages run in a sandboxed iframe: no remote scripts/frames, no network calls,
no dynamic code evaluation, and no JSX in plain scripts.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

FORBIDDEN_JS_PATTERNS = [
    re.compile(r"\beval\s*\(", re.IGNORECASE),
    re.compile(r"\bFunction\s*\("),
    re.compile(r"\bimport\s*\("),
    re.compile(r"\bfetch\s*\("),
    re.compile(r"XMLHttpRequest", re.IGNORECASE),
]

# Raw JSX outside strings, e.g. "return <div>" or "x = <nav>"
JSX_LIKE_PATTERN = re.compile(
    r"(?:return|=)\s*<\s*(?:div|span|nav|ul|ol|li|a|p|h[1-6]|header|footer|section|article"
    r"|button|input|form|label|main|aside)\s*[>\s]",
    re.IGNORECASE,
)

FORBIDDEN_HTML_PATTERNS = [
    re.compile(r"<script[^>]*src\s*=\s*[\"']https?://", re.IGNORECASE),
    re.compile(r"on\w+\s*=\s*[\"'][^\"']*https?://", re.IGNORECASE),
    re.compile(r"<iframe[^>]*src\s*=\s*[\"']https?://", re.IGNORECASE),
]

SCRIPT_BODY_RE = re.compile(r"<script(?![^>]*\bsrc\s*=)[^>]*>([\s\S]*?)</script>", re.IGNORECASE)

# Tailwind Play CDN is preloaded by the preview and is the one allowed remote script.
ALLOWED_SCRIPT_HOSTS = ("cdn.tailwindcss.com",)


@dataclass
class ValidationResult:
    valid: bool
    reason: str = ""


def strip_strings_and_comments(js: str) -> str:
    out = re.sub(r"/\*[\s\S]*?\*/", "", js or "")
    out = re.sub(r"//[^\n]*", "", out)
    out = re.sub(r"`(?:[^`\\]|\\.)*`", '""', out)
    out = re.sub(r'"(?:[^"\\]|\\.)*"', '""', out)
    out = re.sub(r"'(?:[^'\\]|\\.)*'", "''", out)
    return out


def _without_allowed_hosts(html: str) -> str:
    for host in ALLOWED_SCRIPT_HOSTS:
        html = re.sub(
            r"<script[^>]*src\s*=\s*[\"']https?://" + re.escape(host) + r"[^\"']*[\"'][^>]*>",
            "<script>",
            html,
            flags=re.IGNORECASE,
        )
    return html


def validate_js(js: str) -> ValidationResult:
    if any(p.search(js or "") for p in FORBIDDEN_JS_PATTERNS):
        return ValidationResult(False, "JS contains forbidden patterns")
    if JSX_LIKE_PATTERN.search(strip_strings_and_comments(js)):
        return ValidationResult(
            False,
            "JavaScript must not use JSX. Use innerHTML, document.createElement(), "
            "or template literals for HTML.",
        )
    return ValidationResult(True)


def validate_html(html: str) -> ValidationResult:
    cleaned = _without_allowed_hosts(html or "")
    if any(p.search(cleaned) for p in FORBIDDEN_HTML_PATTERNS):
        return ValidationResult(False, "HTML contains forbidden attributes")
    return ValidationResult(True)


def inline_scripts(doc: str) -> List[str]:
    return [m.group(1) for m in SCRIPT_BODY_RE.finditer(doc or "")]


def validate_document(doc: str, original: Optional[str] = None) -> ValidationResult:
    """Validate a patched document.

    When `original` is given only violations the edit introduced count, so a
    page that already carried a flagged pattern can still be edited.
    """
    result = _validate(doc)
    if result.valid or original is None:
        return result
    if not _validate(original).valid and _violation_count(doc) <= _violation_count(original):
        return ValidationResult(True)
    return result


def _validate(doc: str) -> ValidationResult:
    html_result = validate_html(doc)
    if not html_result.valid:
        return html_result
    for script in inline_scripts(doc):
        js_result = validate_js(script)
        if not js_result.valid:
            return js_result
    return ValidationResult(True)


def _violation_count(doc: str) -> int:
    cleaned = _without_allowed_hosts(doc or "")
    count = sum(len(p.findall(cleaned)) for p in FORBIDDEN_HTML_PATTERNS)
    for script in inline_scripts(doc):
        count += sum(len(p.findall(script)) for p in FORBIDDEN_JS_PATTERNS)
        count += len(JSX_LIKE_PATTERN.findall(strip_strings_and_comments(script)))
    return count
