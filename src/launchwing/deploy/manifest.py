"""Deployment manifest (``wrangler.toml``) rendering."""

from __future__ import annotations

import re
from typing import Mapping

from pydantic import BaseModel

from launchwing.core.constants import (
    DEFAULT_COMPATIBILITY_DATE,
    ENTRY_HANDLER_PATH,
    KV_BINDING,
    MAX_PROJECT_NAME_LENGTH,
    NAMESPACE_TITLE_SUFFIX,
    PROJECT_PREFIX,
    STATIC_DIR,
)

_NON_SLUG = re.compile(r"[^a-z0-9-]+")
_HYPHEN_RUNS = re.compile(r"-{2,}")
_KV_REFERENCE = re.compile(rf"\benv\s*\.\s*{KV_BINDING}\b|\benv\s*\[\s*['\"]{KV_BINDING}['\"]\s*\]")


def project_name(idea_id: str, prefix: str = PROJECT_PREFIX) -> str:
    """Deterministic deployable project name for *idea_id*.

    Examples::

        >>> project_name("My Cool Idea!")
        'mvp-my-cool-idea'
        >>> project_name("")
        'mvp-app'
    """
    slug = _NON_SLUG.sub("-", (idea_id or "").lower())
    slug = _HYPHEN_RUNS.sub("-", slug).strip("-")
    if prefix and slug.startswith(prefix):
        slug = slug[len(prefix):]
    name = f"{prefix}{slug or 'app'}"[:MAX_PROJECT_NAME_LENGTH]
    return name.rstrip("-") or f"{prefix}app"


def namespace_title(project: str) -> str:
    return f"{project}{NAMESPACE_TITLE_SUFFIX}"


def needs_kv_binding(files: Mapping[str, str]) -> bool:
    """Static assets exist or the entry handler reads the asset binding."""
    prefix = f"{STATIC_DIR}/"
    if any(path.startswith(prefix) for path in files):
        return True
    return bool(_KV_REFERENCE.search(files.get(ENTRY_HANDLER_PATH, "")))


class ManifestSpec(BaseModel):
    name: str
    main: str = ENTRY_HANDLER_PATH
    compatibility_date: str = DEFAULT_COMPATIBILITY_DATE
    account_id: str | None = None
    static_bucket: str | None = None
    kv_binding: str | None = None
    kv_namespace_id: str | None = None

    @classmethod
    def for_files(
        cls,
        files: Mapping[str, str],
        *,
        name: str,
        compatibility_date: str = DEFAULT_COMPATIBILITY_DATE,
        account_id: str | None = None,
        kv_namespace_id: str | None = None,
    ) -> ManifestSpec:
        prefix = f"{STATIC_DIR}/"
        has_static = any(path.startswith(prefix) for path in files)
        return cls(
            name=name,
            compatibility_date=compatibility_date,
            account_id=account_id,
            static_bucket=f"./{STATIC_DIR}" if has_static else None,
            kv_binding=KV_BINDING if needs_kv_binding(files) else None,
            kv_namespace_id=kv_namespace_id,
        )

    @property
    def missing_namespace_id(self) -> bool:
        return bool(self.kv_binding) and not self.kv_namespace_id


def _toml_str(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_manifest(spec: ManifestSpec) -> str:
    """Render *spec* as ``wrangler.toml`` text.

    Output is deterministic for a given spec. When a binding is needed but
    the namespace id is unknown, the ``id`` line is emitted commented out so
    the file stays valid TOML.
    """
    lines = [
        f"name = {_toml_str(spec.name)}",
        f"main = {_toml_str(spec.main)}",
        f"compatibility_date = {_toml_str(spec.compatibility_date)}",
    ]
    if spec.account_id:
        lines.append(f"account_id = {_toml_str(spec.account_id)}")
    if spec.static_bucket:
        lines += ["", "[site]", f"bucket = {_toml_str(spec.static_bucket)}"]
    if spec.kv_binding:
        lines += ["", "[[kv_namespaces]]", f"binding = {_toml_str(spec.kv_binding)}"]
        if spec.kv_namespace_id:
            lines.append(f"id = {_toml_str(spec.kv_namespace_id)}")
        else:
            lines.append('# id = ""  # provision a KV namespace and fill in its id')
    return "\n".join(lines) + "\n"
