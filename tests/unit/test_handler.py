"""Tests for sanitize/handler.py."""
from __future__ import annotations

import pytest

from launchwing.deploy.manifest import needs_kv_binding
from launchwing.sanitize.handler import (
    DEFAULT_HANDLER,
    brackets_balanced,
    dedupe_entry_blocks,
    looks_like_entry,
)

DUPLICATED = """\
const helper = () => 1;

export default {
  async fetch() {
    return new Response("one");
  },
};

export default {
  async fetch() {
    return new Response("two");
  },
};
"""


@pytest.mark.parametrize(
    "content",
    [
        "export default {\n  async fetch() {}\n};",
        "export default function handler(req) {}",
        "export default async function handler(req) {}",
        "export async function onRequest(context) {}",
        "export const onRequestGet = async () => new Response('ok');",
    ],
)
def test_looks_like_entry(content: str) -> None:
    assert looks_like_entry(content) is True


@pytest.mark.parametrize(
    "content",
    [
        "const x = 1;",
        "// export default {",
        "export function helper() {}",
    ],
)
def test_not_an_entry(content: str) -> None:
    assert looks_like_entry(content) is False


@pytest.mark.parametrize(
    "content",
    [
        "function a() { return [1, 2]; }",
        'const s = "{";',
        "const s = '(';",
        "// } stray brace in a comment",
        "/* ] */ const a = [];",
        "const t = `${a} {`;",
    ],
)
def test_balanced(content: str) -> None:
    assert brackets_balanced(content) is True


@pytest.mark.parametrize(
    "content",
    [
        "function a() { return [1, 2; }",
        "export default {\n  async fetch() {\n",
        "}",
        "const a = (1));",
    ],
)
def test_unbalanced(content: str) -> None:
    assert brackets_balanced(content) is False


def test_dedupe_keeps_first_default_export() -> None:
    deduped = dedupe_entry_blocks(DUPLICATED)
    assert deduped.count("export default") == 1
    assert '"one"' in deduped
    assert '"two"' not in deduped
    assert deduped.startswith("const helper")
    assert brackets_balanced(deduped)


def test_dedupe_keeps_distinct_on_request_exports() -> None:
    content = (
        "export async function onRequestGet() { return 1; }\n"
        "export async function onRequestPost() { return 2; }\n"
        "export async function onRequestGet() { return 3; }\n"
    )
    deduped = dedupe_entry_blocks(content)
    assert deduped.count("onRequestGet") == 1
    assert "onRequestPost" in deduped
    assert "return 3" not in deduped


def test_dedupe_leaves_clean_content_untouched() -> None:
    content = "export default {\n  fetch() {\n    return 1;\n  },\n};\n"
    assert dedupe_entry_blocks(content) is content


def test_default_handler_is_a_valid_entry() -> None:
    assert looks_like_entry(DEFAULT_HANDLER)
    assert brackets_balanced(DEFAULT_HANDLER)
    assert needs_kv_binding({"functions/index.ts": DEFAULT_HANDLER})


def test_default_handler_routes() -> None:
    assert 'path.startsWith("/api/")' in DEFAULT_HANDLER
    assert "status: 404" in DEFAULT_HANDLER
    assert 'path = "/index.html"' in DEFAULT_HANDLER
    assert '"text/plain; charset=utf-8"' in DEFAULT_HANDLER
