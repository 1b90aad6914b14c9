"""Single-document helpers: assembly from html/css/js parts and style-block lookup."""

import re
from typing import Optional

# The page-wide CSS custom property block. At most one is expected per document.
STYLE_BLOCK_RE = re.compile(r":root\s*\{[\s\S]*?\}")

_HEAD = (
    "<!DOCTYPE html>\n"
    '<html lang="en">\n'
    "<head>\n"
    '  <meta charset="UTF-8" />\n'
    '  <meta name="viewport" content="width=device-width, initial-scale=1.0" />\n'
    "  <style>\n"
)
_BODY_OPEN = "\n  </style>\n</head>\n<body>\n"
_SCRIPT_OPEN = "\n  <script>\n"
_TAIL = "\n  </script>\n</body>\n</html>"


def is_complete_document(html: str) -> bool:
    head = (html or "").strip().lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def assemble(html: str, css: str = "", js: str = "") -> str:
    """Combine separate html/css/js into one self-contained document.

    A complete document is returned untouched; css/js are presumed already
    embedded in it.
    """
    html = html or ""
    if is_complete_document(html):
        return html
    return _HEAD + (css or "") + _BODY_OPEN + html + _SCRIPT_OPEN + (js or "") + _TAIL


def find_style_block(doc: str) -> Optional[str]:
    m = STYLE_BLOCK_RE.search(doc or "")
    return m.group(0) if m else None
