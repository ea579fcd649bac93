"""Content sniffing for generated files.

``classify`` looks only at the text, never at the file name: generated paths
are unreliable. Rules are tried in order and the first match wins:

1. markup: an HTML doctype or ``<html`` tag
2. structured data: the whole text parses as a JSON object or array
3. stylesheet: nothing but ``/* ... */`` comment blocks
4. script: JavaScript/TypeScript keywords or syntax
5. stylesheet: ``selector { property: value; }`` rule density
"""

from __future__ import annotations

import json
import re

from launchwing.core.constants import ContentKind

_MARKUP = re.compile(r"<!doctype\s+html|<html[\s>]", re.IGNORECASE)
_COMMENT_BLOCK_ONLY = re.compile(r"\A\s*(?:/\*.*?\*/\s*)+\Z", re.DOTALL)

_SCRIPT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bfunction\b\s*\*?\s*[\w$]*\s*\("),
    re.compile(r"=>"),
    re.compile(r"\b(?:const|let|var)\s+[\w$\[{]"),
    re.compile(r"\bexport\s+(?:default|const|let|var|function|async|class|interface|type)\b"),
    re.compile(r"\bexport\s*\{"),
    re.compile(r"^\s*import\s+[\w$*{][^;\n]*\bfrom\s+['\"]", re.MULTILINE),
    re.compile(r"^\s*import\s+['\"]", re.MULTILINE),
    re.compile(r"\b(?:document|window)\.[A-Za-z_$]"),
    re.compile(r"\baddEventListener\s*\("),
    re.compile(r"\bmodule\.exports\b|\brequire\s*\(\s*['\"]"),
)

_CSS_RULE = re.compile(r"[^{}]+\{[^{}]*?[\w-]+\s*:\s*[^;{}]+;?[^{}]*\}", re.DOTALL)
_CSS_LINE = re.compile(
    r"""^(?:
        [^{};]*\{\s*$                  # selector {
      | \}\s*$                         # }
      | [\w-]+\s*:\s*[^;{}]+;?\s*$     # property: value;
      | [^{}]*\{[^{}]*\}\s*$           # one-line rule
      | /\*.*$ | \*.*$                 # comments
      | @[\w-]+[^{]*;\s*$              # @import ...;
    )""",
    re.VERBOSE,
)
_CSS_LINE_RATIO = 0.6


def is_markup(content: str) -> bool:
    return bool(_MARKUP.search(content))


def is_structured_data(content: str) -> bool:
    text = content.strip()
    if not text or text[0] not in "[{":
        return False
    try:
        value = json.loads(text)
    except ValueError:
        return False
    return isinstance(value, (dict, list))


def is_comment_block(content: str) -> bool:
    return bool(_COMMENT_BLOCK_ONLY.match(content))


def is_script(content: str) -> bool:
    return any(p.search(content) for p in _SCRIPT_PATTERNS)


def is_stylesheet(content: str) -> bool:
    """Rule blocks present and most non-blank lines look like CSS."""
    if not _CSS_RULE.search(content):
        return False
    lines = [ln.strip() for ln in content.splitlines() if ln.strip()]
    if not lines:
        return False
    css_lines = sum(1 for ln in lines if _CSS_LINE.match(ln))
    return css_lines / len(lines) >= _CSS_LINE_RATIO


def classify(content: str) -> ContentKind:
    """Classify *content* as markup, stylesheet, script or structured data."""
    if not content or not content.strip():
        return ContentKind.UNKNOWN
    if is_markup(content):
        return ContentKind.MARKUP
    if is_structured_data(content):
        return ContentKind.STRUCTURED_DATA
    if is_comment_block(content):
        return ContentKind.STYLESHEET
    if is_script(content):
        return ContentKind.SCRIPT
    if is_stylesheet(content):
        return ContentKind.STYLESHEET
    return ContentKind.UNKNOWN
