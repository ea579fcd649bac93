"""Tests for sanitize/prose.py."""
from __future__ import annotations

import pytest

from launchwing.sanitize.prose import strip_prose


def test_removes_markdown_fences() -> None:
    assert strip_prose("```js\nconst a = 1;\n```") == "const a = 1;\n"


@pytest.mark.parametrize(
    "prose",
    [
        "# Worker",
        "### Step 2",
        "- first item",
        "* second item",
        "+ third item",
        "1. Install deps",
        "2) Run it",
        "> quoted advice",
        "**Explanation:**",
        "This file sets up the router.",
        "The code below handles requests",
        "Here is the updated version:",
        "Here's the stylesheet",
        "Note: remember to deploy",
        "To configure the worker, edit wrangler.toml",
        "Make sure the binding exists",
        "I've added a dark mode toggle.",
    ],
)
def test_removes_prose_lines(prose: str) -> None:
    assert strip_prose(f"{prose}\nconst a = 1;\n") == "const a = 1;\n"


@pytest.mark.parametrize(
    "code",
    [
        "this.value = load();",
        "the_file = open();",
        "* {",
        "- 1;",
        "to(configure);",
    ],
)
def test_keeps_lines_ending_in_code_punctuation(code: str) -> None:
    assert strip_prose(code) == f"{code}\n"


def test_keeps_lines_inside_block_comments() -> None:
    text = "/*\n * - not a bullet\n * Note: keep me\n */\nconst a = 1;\n"
    assert strip_prose(text) == text


def test_keeps_lines_inside_markup_comments() -> None:
    text = "<!--\n- keep this\nThis file is documented here\n-->\n<p>hi</p>\n"
    assert strip_prose(text) == text


def test_single_line_comment_does_not_open_block() -> None:
    text = "/* ok */\n- dropped bullet\nconst a = 1;\n"
    assert strip_prose(text) == "/* ok */\nconst a = 1;\n"


def test_only_prose_gives_empty_string() -> None:
    assert strip_prose("Here is the code:\n```js\n```\n") == ""


def test_trims_trailing_whitespace_and_blank_runs() -> None:
    assert strip_prose("a;   \n\n\n\nb;\n\n") == "a;\n\nb;\n"


def test_is_idempotent() -> None:
    text = (
        "Here is the worker:\n```ts\n/**\n * - handler\n */\n"
        "export default {\n  fetch() {\n    return new Response('ok');\n  },\n};\n```\n"
        "Note: deploy with wrangler\n"
    )
    once = strip_prose(text)
    assert strip_prose(once) == once
    assert "Note:" not in once
    assert "```" not in once
