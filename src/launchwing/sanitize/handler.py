"""Entry handler detection, validation and merging.

Generators tend to scatter the worker entry point over several fragments
(``backend/chunk_1.ts``, ``src/index.ts``...) and sometimes emit the same
``export default {...}`` block twice. The helpers here pick one usable
fragment and clean it up.
"""

from __future__ import annotations

import re
from typing import Iterator

from launchwing.core.constants import HANDLER_DIR

BACKEND_DIRS = frozenset({"backend", "worker", "server", "api"})

ENTRY_PATHS = frozenset(
    {
        f"{HANDLER_DIR}/index.ts",
        f"{HANDLER_DIR}/index.js",
        f"{HANDLER_DIR}/_worker.js",
        "src/index.ts",
        "src/index.js",
        "src/worker.ts",
        "src/worker.js",
        "worker.ts",
        "worker.js",
        "index.ts",
    }
)

_DEFAULT_EXPORT = re.compile(
    r"^[ \t]*export\s+default\s+(?:\{|function\b|async\s+function\b)",
    re.MULTILINE,
)
_ON_REQUEST = re.compile(
    r"^[ \t]*export\s+(?:async\s+function|function|const|let)\s+(?P<name>onRequest\w*)\b",
    re.MULTILINE,
)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


def looks_like_entry(content: str) -> bool:
    """True when *content* exports a default handler or an ``onRequest``."""
    return bool(_DEFAULT_EXPORT.search(content) or _ON_REQUEST.search(content))


def _code_chars(text: str, start: int = 0) -> Iterator[tuple[int, str]]:
    """Yield ``(index, char)`` for characters outside strings and comments."""
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if ch == "/" and nxt == "/":
            end = text.find("\n", i)
            i = n if end == -1 else end + 1
            continue
        if ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if ch in "'\"`":
            i += 1
            while i < n and text[i] != ch:
                if text[i] == "\\":
                    i += 1
                elif ch != "`" and text[i] == "\n":
                    break
                i += 1
            i += 1
            continue
        yield i, ch
        i += 1


def brackets_balanced(content: str) -> bool:
    """Check that ``()[]{}`` pair up outside strings and comments."""
    stack: list[str] = []
    for _, ch in _code_chars(content):
        if ch in _OPENERS:
            stack.append(ch)
        elif ch in _CLOSERS:
            if not stack or stack[-1] != _CLOSERS[ch]:
                return False
            stack.pop()
    return not stack


def _block_end(text: str, start: int) -> int | None:
    """End offset of the declaration starting at *start*.

    The body is the first ``{`` met at bracket depth zero; the block ends
    where that brace closes, plus a trailing ``;`` when present.
    """
    depth = 0
    opened = False
    for i, ch in _code_chars(text, start):
        if ch in _OPENERS:
            if ch == "{" and depth == 0:
                opened = True
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth < 0:
                return None
            if opened and depth == 0:
                end = i + 1
                rest = text[end:]
                stripped = rest.lstrip(" \t")
                if stripped.startswith(";"):
                    end += len(rest) - len(stripped) + 1
                return end
    return None


def _drop_repeats(content: str, pattern: re.Pattern[str]) -> str:
    seen: set[str] = set()
    repeats: list[re.Match[str]] = []
    for match in pattern.finditer(content):
        key = match.groupdict().get("name") or ""
        if key in seen:
            repeats.append(match)
        seen.add(key)
    for match in reversed(repeats):
        end = _block_end(content, match.start())
        if end is None:
            continue
        content = content[: match.start()] + content[end:]
    return content


def dedupe_entry_blocks(content: str) -> str:
    """Keep the first default export and the first of each ``onRequest*`` export."""
    deduped = _drop_repeats(content, _DEFAULT_EXPORT)
    deduped = _drop_repeats(deduped, _ON_REQUEST)
    if deduped == content:
        return content
    deduped = re.sub(r"\n{3,}", "\n\n", deduped).strip()
    return deduped + "\n"


DEFAULT_HANDLER = """\
const CONTENT_TYPES: Record<string, string> = {
  html: "text/html; charset=utf-8",
  css: "text/css; charset=utf-8",
  js: "application/javascript; charset=utf-8",
  json: "application/json; charset=utf-8",
  svg: "image/svg+xml",
  png: "image/png",
  jpg: "image/jpeg",
  jpeg: "image/jpeg",
  gif: "image/gif",
  webp: "image/webp",
  ico: "image/x-icon",
  txt: "text/plain; charset=utf-8",
};

function contentTypeFor(path: string): string {
  const ext = (path.split(".").pop() || "").toLowerCase();
  return CONTENT_TYPES[ext] || "text/plain; charset=utf-8";
}

export default {
  async fetch(request: Request, env: { ASSETS: KVNamespace }): Promise<Response> {
    const url = new URL(request.url);
    let path = decodeURIComponent(url.pathname);

    if (path.startsWith("/api/")) {
      return new Response(JSON.stringify({ error: "Not found" }), {
        status: 404,
        headers: { "Content-Type": "application/json" },
      });
    }

    const last = path.split("/").pop() || "";
    if (!last.includes(".")) {
      path = "/index.html";
    }

    const key = path.replace(/^[/]+/, "");
    const body = await env.ASSETS.get(key, "arrayBuffer");
    if (body === null) {
      return new Response("Not found", {
        status: 404,
        headers: { "Content-Type": "text/plain; charset=utf-8" },
      });
    }
    return new Response(body, {
      headers: { "Content-Type": contentTypeFor(key) },
    });
  },
};
"""
