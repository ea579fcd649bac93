from __future__ import annotations

from enum import StrEnum


class ContentKind(StrEnum):
    MARKUP = "markup"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"
    STRUCTURED_DATA = "structured_data"
    UNKNOWN = "unknown"


class BuildStage(StrEnum):
    PLANNING = "planning"
    GENERATION = "generation"
    SANITIZATION = "sanitization"
    CONFIGURATION = "configuration"
    PUBLISHING = "publishing"


class PublishStep(StrEnum):
    CREATE_REPO = "create_repo"
    CREATE_BLOBS = "create_blobs"
    RESOLVE_BASE_REF = "resolve_base_ref"
    CREATE_TREE = "create_tree"
    CREATE_COMMIT = "create_commit"
    UPDATE_REF = "update_ref"
    PUBLISHED = "published"
    FAILED = "failed"


# Canonical project layout
STATIC_DIR = "public"
HANDLER_DIR = "functions"
ENTRY_HANDLER_PATH = "functions/index.ts"
MANIFEST_PATH = "wrangler.toml"
WORKFLOW_PATH = ".github/workflows/deploy.yml"
WORKFLOW_DIR = ".github/workflows"
PACKAGE_MANIFEST_PATH = "package.json"
INDEX_PATH = "public/index.html"
STYLESHEET_PATH = "public/styles.css"
SCRIPT_PATH = "public/app.js"

KV_BINDING = "ASSETS"
NAMESPACE_TITLE_SUFFIX = "-ASSETS"
PROJECT_PREFIX = "mvp-"
MAX_PROJECT_NAME_LENGTH = 63
MAX_PATH_LENGTH = 200

DEFAULT_COMPATIBILITY_DATE = "2024-08-01"
DEFAULT_BRANCH = "main"
FALLBACK_BRANCH = "master"
DEFAULT_COMMIT_MESSAGE = "Initial MVP commit"
USER_AGENT = "LaunchWing-Agent"
