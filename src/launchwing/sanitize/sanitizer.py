"""Turn raw generator output into a deployable canonical project."""

from __future__ import annotations

from typing import Iterable

import structlog
from pydantic import BaseModel, Field

from launchwing.core.constants import (
    DEFAULT_COMPATIBILITY_DATE,
    ENTRY_HANDLER_PATH,
    HANDLER_DIR,
    INDEX_PATH,
    MANIFEST_PATH,
    PACKAGE_MANIFEST_PATH,
    SCRIPT_PATH,
    STATIC_DIR,
    STYLESHEET_PATH,
    WORKFLOW_DIR,
    WORKFLOW_PATH,
    ContentKind,
)
from launchwing.core.exceptions import InvalidPathError
from launchwing.core.types import Branding, CanonicalProject, GeneratedFile
from launchwing.deploy.manifest import ManifestSpec, render_manifest
from launchwing.sanitize.classify import classify
from launchwing.sanitize.handler import (
    BACKEND_DIRS,
    DEFAULT_HANDLER,
    ENTRY_PATHS,
    brackets_balanced,
    dedupe_entry_blocks,
    looks_like_entry,
)
from launchwing.sanitize.prose import strip_prose
from launchwing.sanitize.templates import (
    DEFAULT_SCRIPT,
    DEFAULT_WORKFLOW,
    default_index,
    default_stylesheet,
    ensure_package_manifest,
    patch_workflow,
)
from launchwing.utils.paths import basename, extension, normalize_path, top_dir, validate_path

logger = structlog.get_logger(__name__)

FRONTEND_DIRS = frozenset({"", "frontend", "src", "static", "client", "web"})
CODE_EXTENSIONS = frozenset({"ts", "tsx", "js", "jsx", "mjs", "css", "html", "htm"})
DOC_EXTENSIONS = frozenset({"md", "markdown", "txt", "rst"})
_ROUTABLE_EXTENSIONS = frozenset({"", "html", "htm", "css", "js", "mjs"})
_STRIPPED_KINDS = frozenset({ContentKind.MARKUP, ContentKind.STYLESHEET, ContentKind.SCRIPT})

# kind -> (canonical path, extension for later files of the same kind)
_CANONICAL_ASSETS: dict[ContentKind, tuple[str, str]] = {
    ContentKind.MARKUP: (INDEX_PATH, "html"),
    ContentKind.STYLESHEET: (STYLESHEET_PATH, "css"),
    ContentKind.SCRIPT: (SCRIPT_PATH, "js"),
}


class SanitizerOptions(BaseModel):
    project_name: str
    branding: Branding = Field(default_factory=Branding)
    compatibility_date: str = DEFAULT_COMPATIBILITY_DATE
    account_id: str | None = None
    kv_namespace_id: str | None = None
    strict_paths: bool = False


def _is_manifest_variant(path: str) -> bool:
    return "/" not in path and path.startswith("wrangler.")


def _is_workflow(path: str) -> bool:
    return path.startswith(f"{WORKFLOW_DIR}/") and extension(path) in ("yml", "yaml")


def clean_content(path: str, content: str) -> str:
    """Prose-strip code, trim everything else. ``""`` means nothing is left."""
    ext = extension(path)
    kind = classify(content)
    if kind is not ContentKind.STRUCTURED_DATA and ext not in DOC_EXTENSIONS:
        if kind in _STRIPPED_KINDS or ext in CODE_EXTENSIONS:
            return strip_prose(content)
    text = content.strip()
    return text + "\n" if text else ""


class _Run:
    """Mutable bookkeeping for one ``sanitize`` call."""

    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self.files: dict[str, str] = {}
        self.warnings: list[str] = []
        self.dropped: list[str] = []

    def drop(self, path: str, reason: str, *, warn: bool = True) -> None:
        self.dropped.append(path)
        if warn:
            self.warnings.append(f"{path}: {reason}")
        logger.info("sanitize.dropped", path=path, reason=reason)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning("sanitize.warning", message=message)


class Sanitizer:
    """Clean, classify, route and complete generated files.

    ``sanitize`` is pure and synchronous. It only raises when
    ``strict_paths`` is set and a path fails validation. Running it on its
    own output with the same options gives the same files.

    Usage::

        sanitizer = Sanitizer(SanitizerOptions(project_name="mvp-todo"))
        project = sanitizer.sanitize(generated_files)
        project.files["wrangler.toml"]
    """

    def __init__(self, options: SanitizerOptions) -> None:
        self._options = options

    @property
    def options(self) -> SanitizerOptions:
        return self._options

    def sanitize(self, files: Iterable[GeneratedFile]) -> CanonicalProject:
        run = _Run(self._options.strict_paths)
        staged = self._validate_paths(files, run)
        existing = {path for path, _ in staged}

        entry_candidates: list[tuple[str, str]] = []
        workflows: list[tuple[str, str]] = []

        for path, content in staged:
            if path == PACKAGE_MANIFEST_PATH:
                run.files[path] = ensure_package_manifest(
                    content, self._options.project_name
                )
                continue
            if _is_manifest_variant(path):
                run.drop(path, "regenerated", warn=path != MANIFEST_PATH)
                continue
            if _is_workflow(path):
                workflows.append((path, content))
                continue

            cleaned = clean_content(path, content)
            if not cleaned:
                run.drop(path, "empty after cleanup")
                continue
            if self._is_entry_candidate(path, cleaned):
                entry_candidates.append((path, cleaned))
                continue

            target = self._route(path, cleaned, existing, run.files)
            if target != path:
                logger.debug("sanitize.routed", source=path, target=target)
            run.files[target] = cleaned

        self._merge_entry_handler(entry_candidates, run)
        self._ensure_workflow(workflows, run)
        self._ensure_static_defaults(run)
        self._write_manifest(run)

        logger.info(
            "sanitize.done",
            files=len(run.files),
            dropped=len(run.dropped),
            warnings=len(run.warnings),
        )
        return CanonicalProject(files=run.files, warnings=run.warnings, dropped=run.dropped)

    def _validate_paths(
        self, files: Iterable[GeneratedFile], run: _Run
    ) -> list[tuple[str, str]]:
        staged: list[tuple[str, str]] = []
        for item in files:
            path = normalize_path(item.path)
            reason = validate_path(path)
            if reason:
                if run.strict:
                    raise InvalidPathError(item.path, reason)
                run.drop(item.path, f"invalid path ({reason})")
                continue
            staged.append((path, item.content or ""))
        return staged

    @staticmethod
    def _is_entry_candidate(path: str, content: str) -> bool:
        if top_dir(path) not in BACKEND_DIRS and path not in ENTRY_PATHS:
            return False
        return looks_like_entry(content)

    @staticmethod
    def _route(
        path: str,
        content: str,
        existing: set[str],
        placed: dict[str, str],
    ) -> str:
        if path.startswith((f"{STATIC_DIR}/", f"{HANDLER_DIR}/")):
            return path
        directory = top_dir(path)
        if directory in BACKEND_DIRS:
            if extension(path) in CODE_EXTENSIONS:
                return f"{HANDLER_DIR}/{basename(path)}"
            return path
        if directory not in FRONTEND_DIRS or extension(path) not in _ROUTABLE_EXTENSIONS:
            return path

        kind = classify(content)
        if kind not in _CANONICAL_ASSETS:
            return path
        canonical, ext = _CANONICAL_ASSETS[kind]
        if canonical not in existing and canonical not in placed:
            return canonical
        name = basename(path)
        if not extension(name):
            name = f"{name}.{ext}"
        return f"{STATIC_DIR}/{name}"

    @staticmethod
    def _merge_entry_handler(candidates: list[tuple[str, str]], run: _Run) -> None:
        winner: tuple[str, str] | None = None
        for path, content in candidates:
            if winner is None and brackets_balanced(content):
                winner = (path, content)
                continue
            reason = "unbalanced brackets" if winner is None else f"superseded by {winner[0]}"
            run.drop(path, f"entry handler candidate dropped ({reason})")

        if ENTRY_HANDLER_PATH in run.files:
            # Only reached for content without a handler export.
            run.drop(ENTRY_HANDLER_PATH, "no handler export")
        if winner is None:
            if candidates:
                run.warn("no usable entry handler; generated the default asset handler")
            run.files[ENTRY_HANDLER_PATH] = DEFAULT_HANDLER
            return
        if winner[0] != ENTRY_HANDLER_PATH:
            logger.debug("sanitize.entry_handler", source=winner[0])
        run.files[ENTRY_HANDLER_PATH] = dedupe_entry_blocks(winner[1])

    @staticmethod
    def _ensure_workflow(workflows: list[tuple[str, str]], run: _Run) -> None:
        if not workflows:
            run.files[WORKFLOW_PATH] = DEFAULT_WORKFLOW
            return
        chosen = next((w for w in workflows if w[0] == WORKFLOW_PATH), workflows[0])
        for path, _ in workflows:
            if path != chosen[0]:
                run.drop(path, "extra workflow")
        patched = patch_workflow(chosen[1])
        if patched == DEFAULT_WORKFLOW and chosen[1].strip() != DEFAULT_WORKFLOW.strip():
            logger.info("sanitize.workflow_replaced", source=chosen[0])
        run.files[WORKFLOW_PATH] = patched

    def _ensure_static_defaults(self, run: _Run) -> None:
        prefix = f"{STATIC_DIR}/"
        if not any(p.startswith(prefix) for p in run.files):
            return
        branding = self._options.branding
        if INDEX_PATH not in run.files:
            run.files[INDEX_PATH] = default_index(branding, self._options.project_name)
        if STYLESHEET_PATH not in run.files:
            run.files[STYLESHEET_PATH] = default_stylesheet(branding)
        if SCRIPT_PATH not in run.files:
            run.files[SCRIPT_PATH] = DEFAULT_SCRIPT

    def _write_manifest(self, run: _Run) -> None:
        spec = ManifestSpec.for_files(
            run.files,
            name=self._options.project_name,
            compatibility_date=self._options.compatibility_date,
            account_id=self._options.account_id,
            kv_namespace_id=self._options.kv_namespace_id,
        )
        if spec.missing_namespace_id:
            run.warn(f"{MANIFEST_PATH}: KV namespace id unknown; binding left commented out")
        run.files[MANIFEST_PATH] = render_manifest(spec)
