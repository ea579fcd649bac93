from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from launchwing.core.constants import (
    ENTRY_HANDLER_PATH,
    INDEX_PATH,
    MANIFEST_PATH,
    STATIC_DIR,
    WORKFLOW_PATH,
)
from launchwing.utils.paths import normalize_path


class FileSpec(BaseModel):
    """One file the plan wants generated."""

    path: str
    description: str = ""

    @field_validator("path")
    @classmethod
    def _normalize(cls, value: str) -> str:
        normalized = normalize_path(value)
        if not normalized:
            raise ValueError("path must not be empty")
        return normalized

    def to_wire(self) -> dict[str, str]:
        return {"path": self.path, "description": self.description}


class GeneratedFile(BaseModel):
    """Output of the generator for one file.

    ``content`` may be empty while the file is in flight; the sanitizer drops
    anything that is still empty after cleanup.
    """

    path: str
    content: str = ""

    def to_wire(self) -> dict[str, str]:
        return {"path": self.path, "content": self.content}


class Palette(BaseModel):
    primary: str | None = None
    secondary: str | None = None


class Branding(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    tagline: str | None = None
    palette: Palette = Field(default_factory=Palette)
    colors: list[str] = Field(default_factory=list)
    logo_url: str | None = Field(default=None, alias="logoUrl")
    logo_desc: str | None = Field(default=None, alias="logoDesc")

    @property
    def primary_color(self) -> str:
        if self.palette.primary:
            return self.palette.primary
        if self.colors:
            return self.colors[0]
        return "#2563eb"

    @property
    def secondary_color(self) -> str:
        if self.palette.secondary:
            return self.palette.secondary
        if len(self.colors) > 1:
            return self.colors[1]
        return "#111827"


class IdeaSummary(BaseModel):
    name: str = ""
    description: str = ""


class ChatMessage(BaseModel):
    role: str
    content: str


class BuildPayload(BaseModel):
    """Input to the whole pipeline, immutable once built.

    ``target_files`` skips the planner when given. ``files`` skips both the
    planner and the generator: the files go straight to the sanitizer.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    idea_id: str = Field(..., min_length=1, alias="ideaId")
    idea_summary: IdeaSummary = Field(default_factory=IdeaSummary, alias="ideaSummary")
    branding: Branding = Field(default_factory=Branding)
    plan: str | None = None
    messages: list[ChatMessage] = Field(default_factory=list)
    target_files: list[FileSpec] | None = Field(default=None, alias="targetFiles")
    files: list[GeneratedFile] | None = None

    @property
    def plan_text(self) -> str:
        """Plan text, falling back to the idea description."""
        return self.plan or self.idea_summary.description or ""


class PlannerResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan: str
    target_files: list[FileSpec] = Field(default_factory=list, alias="targetFiles")


class CanonicalProject(BaseModel):
    """Sanitized file map ready to publish.

    Keys are unique normalized paths; values are never empty.
    """

    files: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)

    def __contains__(self, path: object) -> bool:
        return path in self.files

    def __len__(self) -> int:
        return len(self.files)

    @property
    def paths(self) -> list[str]:
        return sorted(self.files)

    @property
    def static_assets(self) -> list[str]:
        prefix = f"{STATIC_DIR}/"
        return sorted(p for p in self.files if p.startswith(prefix))

    @property
    def has_static_assets(self) -> bool:
        return bool(self.static_assets)

    @property
    def entry_handler(self) -> str:
        return self.files.get(ENTRY_HANDLER_PATH, "")

    @property
    def manifest(self) -> str:
        return self.files.get(MANIFEST_PATH, "")

    @property
    def workflow(self) -> str:
        return self.files.get(WORKFLOW_PATH, "")

    @property
    def has_index(self) -> bool:
        return INDEX_PATH in self.files

    def as_files(self) -> list[GeneratedFile]:
        return [GeneratedFile(path=p, content=c) for p, c in self.files.items()]


class KvNamespaceRef(BaseModel):
    """A provisioned key-value namespace for static assets."""

    title: str
    id: str
    created: bool = False


class PublishResult(BaseModel):
    repo_url: str
    branch: str
    commit_sha: str
    repo_created: bool = True


class BuildResult(BaseModel):
    repo_url: str
    deploy_url: str | None = None
    plan: str = ""
    project_name: str
    commit_sha: str | None = None
    files: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    namespace: KvNamespaceRef | None = None

    def to_response(self) -> dict[str, Any]:
        """Serialize to the ``{repoUrl, deployUrl, plan}`` shape callers expect."""
        return {
            "repoUrl": self.repo_url,
            "deployUrl": self.deploy_url,
            "plan": self.plan,
        }
