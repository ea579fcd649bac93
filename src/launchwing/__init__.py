"""launchwing: turn an idea into a published, deployable web project."""

from launchwing.__version__ import __version__

from launchwing.build.orchestrator import BuildOrchestrator, build_project, build_project_sync
from launchwing.connectors.cloudflare import CloudflareConnector
from launchwing.connectors.github import GitHubConnector
from launchwing.core.config import (
    BuildConfig,
    CloudflareConfig,
    GeneratorConfig,
    GitHubConfig,
    PlannerConfig,
)
from launchwing.core.constants import BuildStage, ContentKind, PublishStep
from launchwing.core.exceptions import (
    BatchGenerationError,
    BuildError,
    ConfigurationError,
    InvalidArgument,
    InvalidPathError,
    LaunchwingError,
    MalformedResponse,
    PreconditionFailed,
    PublishError,
    RequestRejected,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from launchwing.core.types import (
    Branding,
    BuildPayload,
    BuildResult,
    CanonicalProject,
    FileSpec,
    GeneratedFile,
    KvNamespaceRef,
    PublishResult,
)
from launchwing.deploy.manifest import project_name, render_manifest
from launchwing.deploy.synthesizer import ConfigSynthesizer
from launchwing.generation.batch import BatchOrchestrator
from launchwing.generation.client import CodeGeneratorClient
from launchwing.generation.planner import ChatPlanner, StaticPlanner
from launchwing.publish.publisher import Publisher
from launchwing.resilience.retry import RetryPolicy
from launchwing.sanitize.classify import classify
from launchwing.sanitize.sanitizer import Sanitizer, SanitizerOptions
from launchwing.utils.chunking import chunk
from launchwing.utils.logging import configure_logging

__all__ = [
    "__version__",
    # Orchestration
    "BuildOrchestrator",
    "build_project",
    "build_project_sync",
    # Configuration
    "BuildConfig",
    "CloudflareConfig",
    "GeneratorConfig",
    "GitHubConfig",
    "PlannerConfig",
    "configure_logging",
    # Constants
    "BuildStage",
    "ContentKind",
    "PublishStep",
    # Errors
    "BatchGenerationError",
    "BuildError",
    "ConfigurationError",
    "InvalidArgument",
    "InvalidPathError",
    "LaunchwingError",
    "MalformedResponse",
    "PreconditionFailed",
    "PublishError",
    "RequestRejected",
    "UpstreamConnectionError",
    "UpstreamError",
    "UpstreamTimeoutError",
    # Types
    "Branding",
    "BuildPayload",
    "BuildResult",
    "CanonicalProject",
    "FileSpec",
    "GeneratedFile",
    "KvNamespaceRef",
    "PublishResult",
    # Generation
    "BatchOrchestrator",
    "ChatPlanner",
    "CodeGeneratorClient",
    "RetryPolicy",
    "StaticPlanner",
    "chunk",
    # Sanitizing and deployment
    "ConfigSynthesizer",
    "Sanitizer",
    "SanitizerOptions",
    "classify",
    "project_name",
    "render_manifest",
    # Publishing
    "CloudflareConnector",
    "GitHubConnector",
    "Publisher",
]
