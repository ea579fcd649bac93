from __future__ import annotations

import re

from launchwing.core.constants import MAX_PATH_LENGTH

_MULTI_SLASH = re.compile(r"/{2,}")
_FORBIDDEN_CHARS = set('?%*:|"<>')


def normalize_path(path: str) -> str:
    """Normalize a generated file path to a repo-relative POSIX path.

    Trims whitespace, turns backslashes into forward slashes, strips any
    leading ``./`` and ``/`` segments and collapses duplicate slashes.

    Examples::

        >>> normalize_path("./src\\\\app.js")
        'src/app.js'
        >>> normalize_path("//public//index.html")
        'public/index.html'
    """
    p = (path or "").strip().replace("\\", "/")
    p = _MULTI_SLASH.sub("/", p)
    while True:
        if p.startswith("./"):
            p = p[2:]
        elif p.startswith("/"):
            p = p[1:]
        else:
            break
    return p


def validate_path(path: str) -> str | None:
    """Return a reason string when *path* is not publishable, else ``None``.

    *path* is expected to be normalized already.
    """
    if not path:
        return "empty path"
    if len(path) > MAX_PATH_LENGTH:
        return f"longer than {MAX_PATH_LENGTH} characters"
    if any(not ch.isprintable() for ch in path):
        return "contains non-printable characters"
    bad = sorted({ch for ch in path if ch in _FORBIDDEN_CHARS})
    if bad:
        return f"contains forbidden characters {''.join(bad)!r}"
    segments = path.split("/")
    if any(seg in ("", ".", "..") for seg in segments):
        return "contains empty or relative segments"
    return None


def basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def extension(path: str) -> str:
    """Lower-cased extension without the dot (``""`` when there is none)."""
    name = basename(path)
    if "." not in name.lstrip("."):
        return ""
    return name.rsplit(".", 1)[-1].lower()


def top_dir(path: str) -> str:
    """First path segment, or ``""`` for files at the root."""
    return path.split("/", 1)[0] if "/" in path else ""
