"""Remove chat-style prose that code generators leave around their output."""

from __future__ import annotations

import re

_FENCE = re.compile(r"^\s*```")
_HEADING = re.compile(r"^#{1,6}\s+\S")
_BULLET = re.compile(r"^(?:[-+•]|\*(?!\*))\s+\S")
_NUMBERED = re.compile(r"^\d+[.)]\s+\S")
_BLOCKQUOTE = re.compile(r"^>\s?")
_BOLD_ONLY = re.compile(r"^\*\*[^*]+\*\*:?$")
_FILLER = re.compile(
    r"""^(?:
        (?:this|the|these)\s+(?:file|code|script|stylesheet|styles|page|component|
            handler|function|module|worker|snippet|implementation|example|project|app)\b
      | (?:to|in\s+order\s+to)\s+(?:configure|use|run|deploy|set\s+up|setup|install|
            test|start|build|customi[sz]e)\b
      | here(?:'s|\s+is|\s+are)\b
      | below\s+(?:is|are)\b
      | note:
      | explanation:
      | make\s+sure\b
      | i(?:'ve|\s+have)?\s+(?:created|added|updated|written|included)\b
      | let's\b
    )""",
    re.IGNORECASE | re.VERBOSE,
)
# A line ending in one of these is code even when it starts like prose.
_CODE_ENDINGS = tuple(";{}()[],<>=+`'\"/\\&|")


def _is_prose(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return False
    if _HEADING.match(stripped) or _BOLD_ONLY.match(stripped):
        return True
    if stripped.endswith(_CODE_ENDINGS):
        return False
    return bool(
        _BULLET.match(stripped)
        or _NUMBERED.match(stripped)
        or _BLOCKQUOTE.match(stripped)
        or _FILLER.match(stripped)
    )


def strip_prose(content: str) -> str:
    """Strip Markdown fences and explanatory prose from generated code.

    Lines inside ``/* ... */`` and ``<!-- ... -->`` comments are always
    kept. Trailing whitespace is trimmed and runs of blank lines are
    collapsed, so the result is stable: ``strip_prose(strip_prose(x)) ==
    strip_prose(x)``. Returns ``""`` when nothing but prose was found.
    """
    kept: list[str] = []
    in_block_comment = False
    in_markup_comment = False

    for raw in content.splitlines():
        line = raw.rstrip()

        if in_block_comment or in_markup_comment:
            kept.append(line)
            if in_block_comment and "*/" in line:
                in_block_comment = False
            if in_markup_comment and "-->" in line:
                in_markup_comment = False
            continue

        if _FENCE.match(line):
            continue

        opens_block = line.rfind("/*") > line.rfind("*/")
        opens_markup = line.rfind("<!--") > line.rfind("-->")
        if opens_block or opens_markup:
            kept.append(line)
            in_block_comment = opens_block
            in_markup_comment = opens_markup
            continue

        if _is_prose(line):
            continue
        kept.append(line)

    text = "\n".join(kept)
    text = re.sub(r"\n{3,}", "\n\n", text).strip()
    if not text.strip():
        return ""
    return text + "\n"
