"""Decode the generator's response into ``GeneratedFile`` objects.

The generator is known to answer in several shapes. They are resolved here,
once, so everything downstream sees ``list[GeneratedFile]``:

* a bare array of file objects,
* ``{"files": [...]}``,
* ``{"files": {"<path>": "<content>", ...}}``,
* ``{"result": [...]}``.

File objects may spell their fields ``path``/``filename``/``file`` and
``content``/``body``/``code``.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from launchwing.core.exceptions import MalformedResponse
from launchwing.core.types import GeneratedFile

logger = structlog.get_logger(__name__)

_PATH_KEYS = ("path", "filename", "file")
_CONTENT_KEYS = ("content", "body", "code")


class _FilesEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    files: list[Any] | dict[str, Any]


class _ResultEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    result: list[Any]


def _first_str(item: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str):
            return value
    return None


def coerce_item(item: Any, *, expect_content: bool = True) -> GeneratedFile | None:
    """Coerce one file object, or return ``None`` when it is unusable."""
    if not isinstance(item, dict):
        return None
    path = _first_str(item, _PATH_KEYS)
    content = _first_str(item, _CONTENT_KEYS)
    if content is None and not expect_content:
        content = ""
    if not path or content is None:
        return None
    return GeneratedFile(path=path, content=content)


def _coerce_all(items: list[Any], *, expect_content: bool) -> list[GeneratedFile]:
    files: list[GeneratedFile] = []
    skipped = 0
    for item in items:
        coerced = coerce_item(item, expect_content=expect_content)
        if coerced is None:
            skipped += 1
            continue
        files.append(coerced)
    if skipped:
        logger.warning("generator.items_skipped", skipped=skipped, kept=len(files))
    return files


def decode_generated_files(raw: Any, *, expect_content: bool = True) -> list[GeneratedFile]:
    """Resolve any tolerated response shape to ``list[GeneratedFile]``.

    ``None`` (an empty body) decodes to ``[]``.

    Raises:
        MalformedResponse: *raw* matches none of the tolerated shapes.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return _coerce_all(raw, expect_content=expect_content)
    if isinstance(raw, dict):
        try:
            envelope = _FilesEnvelope.model_validate(raw)
        except ValidationError:
            pass
        else:
            if isinstance(envelope.files, dict):
                items = [
                    {"path": path, "content": content}
                    for path, content in envelope.files.items()
                ]
                return _coerce_all(items, expect_content=expect_content)
            return _coerce_all(envelope.files, expect_content=expect_content)
        try:
            result = _ResultEnvelope.model_validate(raw)
        except ValidationError:
            pass
        else:
            return _coerce_all(result.result, expect_content=expect_content)
    raise MalformedResponse(
        "Unrecognized generator response shape",
        code="malformed_response",
        details={"type": type(raw).__name__},
    )
