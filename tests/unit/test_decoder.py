"""Tests for generation/decoder.py."""
from __future__ import annotations

import pytest

from launchwing.core.exceptions import MalformedResponse
from launchwing.generation.decoder import coerce_item, decode_generated_files


def _pairs(files: list) -> list[tuple[str, str]]:
    return [(f.path, f.content) for f in files]


def test_bare_list() -> None:
    raw = [{"path": "public/index.html", "content": "<html></html>"}]
    assert _pairs(decode_generated_files(raw)) == [("public/index.html", "<html></html>")]


def test_files_list_envelope() -> None:
    raw = {"files": [{"path": "a.js", "content": "1"}, {"path": "b.js", "content": "2"}]}
    assert _pairs(decode_generated_files(raw)) == [("a.js", "1"), ("b.js", "2")]


def test_files_map_envelope() -> None:
    raw = {"files": {"a.js": "1", "b.css": "body{}"}}
    assert _pairs(decode_generated_files(raw)) == [("a.js", "1"), ("b.css", "body{}")]


def test_result_envelope() -> None:
    raw = {"result": [{"path": "a.js", "content": "1"}], "usage": {"tokens": 10}}
    assert _pairs(decode_generated_files(raw)) == [("a.js", "1")]


def test_alternate_field_names() -> None:
    raw = [
        {"filename": "a.js", "body": "1"},
        {"file": "b.js", "code": "2"},
    ]
    assert _pairs(decode_generated_files(raw)) == [("a.js", "1"), ("b.js", "2")]


def test_none_decodes_to_empty() -> None:
    assert decode_generated_files(None) == []


def test_unusable_items_are_skipped() -> None:
    raw = [{"path": "a.js", "content": "1"}, "junk", {"content": "no path"}, {"path": ""}]
    assert _pairs(decode_generated_files(raw)) == [("a.js", "1")]


def test_missing_content_skipped_when_expected() -> None:
    assert coerce_item({"path": "a.js"}) is None


def test_missing_content_allowed_when_not_expected() -> None:
    item = coerce_item({"path": "a.js"}, expect_content=False)
    assert item is not None
    assert item.content == ""


@pytest.mark.parametrize("raw", [{"data": []}, "text", 42, {"files": "nope"}])
def test_unknown_shapes_raise(raw: object) -> None:
    with pytest.raises(MalformedResponse):
        decode_generated_files(raw)
