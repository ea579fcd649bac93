"""End-to-end build: plan, generate, sanitize, configure, publish."""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from launchwing.connectors.cloudflare import CloudflareConnector
from launchwing.connectors.github import GitHubConnector
from launchwing.core.config import BuildConfig
from launchwing.core.constants import BuildStage
from launchwing.core.exceptions import (
    BatchGenerationError,
    BuildError,
    ConfigurationError,
    LaunchwingError,
    PreconditionFailed,
    PublishError,
)
from launchwing.core.types import (
    BuildPayload,
    BuildResult,
    CanonicalProject,
    GeneratedFile,
    KvNamespaceRef,
    PlannerResult,
    PublishResult,
)
from launchwing.deploy.manifest import needs_kv_binding, project_name
from launchwing.deploy.synthesizer import ConfigSynthesizer
from launchwing.generation.batch import BatchOrchestrator
from launchwing.generation.client import CodeGeneratorClient
from launchwing.generation.planner import ChatPlanner, Planner, StaticPlanner
from launchwing.publish.publisher import Publisher
from launchwing.sanitize.sanitizer import Sanitizer, SanitizerOptions
from launchwing.utils.async_helpers import run_sync
from launchwing.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


def deploy_url(project: str, subdomain: str) -> str:
    return f"https://{project}.{subdomain}.workers.dev"


class BuildOrchestrator:
    """Runs one build per :meth:`build` call.

    Connectors are created per build from *config*, so concurrent builds on
    the same orchestrator share no HTTP clients. *transport* is handed to
    every connector (tests pass an ``httpx.MockTransport``).

    Args:
        config: Credentials and tuning for every component.
        planner: Planner to use when the payload carries no file list.
            Defaults to :class:`ChatPlanner` when a planner API key is
            configured, else :class:`StaticPlanner`.
        transport: Optional httpx transport shared by all connectors.
    """

    def __init__(
        self,
        config: BuildConfig | None = None,
        *,
        planner: Planner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or BuildConfig()
        self._planner = planner
        self._transport = transport

    def __repr__(self) -> str:
        return f"BuildOrchestrator(batch_size={self._config.batch_size})"

    @property
    def config(self) -> BuildConfig:
        return self._config

    async def build(self, payload: BuildPayload) -> BuildResult:
        """Build and publish the project described by *payload*.

        Raises:
            PreconditionFailed: The payload resolves to zero files.
            ConfigurationError: GitHub credentials are missing.
            BuildError: A stage failed; ``.stage`` names it and ``.partial``
                describes what completed.
        """
        start_ms = _now_ms()
        name = project_name(payload.idea_id, self._config.github.repo_prefix)
        log = logger.bind(idea_id=payload.idea_id, project=name)
        partial: dict[str, Any] = {"project_name": name}

        if payload.files is None and payload.target_files is not None and not payload.target_files:
            raise PreconditionFailed("No target files to generate", code="no_target_files")
        if payload.files is not None and not payload.files:
            raise PreconditionFailed("No files to publish", code="no_files")
        self._check_publish_credentials()

        if payload.files is not None:
            plan = payload.plan_text
            generated = list(payload.files)
            log.info("build.files_supplied", files=len(generated))
        else:
            planned = await self._plan(payload, partial)
            plan = planned.plan
            if not planned.target_files:
                raise PreconditionFailed(
                    "The planner produced no target files", code="no_target_files"
                )
            generated = await self._generate(payload, planned, partial)
        partial["generated_files"] = [f.path for f in generated]

        project = self._sanitize(payload, name, generated, partial)
        project, namespace = await self._configure(name, project, partial)
        publish = await self._publish(name, project, partial)
        url = await self._deploy_url(name)

        log.info(
            "build.done",
            repo_url=publish.repo_url,
            deploy_url=url,
            files=len(project),
            latency_ms=_now_ms() - start_ms,
        )
        return BuildResult(
            repo_url=publish.repo_url,
            deploy_url=url,
            plan=plan,
            project_name=name,
            commit_sha=publish.commit_sha,
            files=project.paths,
            warnings=project.warnings,
            namespace=namespace,
        )

    def _check_publish_credentials(self) -> None:
        github = self._config.github
        if not github.token:
            raise ConfigurationError("GitHub token is required to publish")
        if not github.owner:
            raise ConfigurationError("GitHub org or username is required to publish")

    def _default_planner(self) -> Planner:
        if self._config.planner.api_key:
            return ChatPlanner(self._config.planner, transport=self._transport)
        return StaticPlanner()

    async def _plan(self, payload: BuildPayload, partial: dict[str, Any]) -> PlannerResult:
        if payload.target_files is not None:
            return PlannerResult(plan=payload.plan_text, target_files=list(payload.target_files))
        planner = self._planner or self._default_planner()
        try:
            if isinstance(planner, ChatPlanner):
                async with planner:
                    return await planner.plan(payload)
            return await planner.plan(payload)
        except LaunchwingError as exc:
            raise BuildError(BuildStage.PLANNING, str(exc), partial=partial) from exc

    async def _generate(
        self,
        payload: BuildPayload,
        planned: PlannerResult,
        partial: dict[str, Any],
    ) -> list[GeneratedFile]:
        partial["target_files"] = [spec.path for spec in planned.target_files]
        client = CodeGeneratorClient(self._config.generator, transport=self._transport)
        batches = BatchOrchestrator(client, batch_size=self._config.batch_size)
        try:
            async with client:
                return await batches.generate_all(
                    planned.target_files,
                    plan=planned.plan,
                    messages=payload.messages,
                )
        except BatchGenerationError as exc:
            partial["generated_files"] = [f.path for f in exc.completed_files]
            raise BuildError(BuildStage.GENERATION, str(exc), partial=partial) from exc
        except LaunchwingError as exc:
            raise BuildError(BuildStage.GENERATION, str(exc), partial=partial) from exc

    def _sanitize(
        self,
        payload: BuildPayload,
        name: str,
        generated: list[GeneratedFile],
        partial: dict[str, Any],
    ) -> CanonicalProject:
        options = SanitizerOptions(
            project_name=name,
            branding=payload.branding,
            compatibility_date=self._config.compatibility_date,
            account_id=self._config.cloudflare.account_id,
            strict_paths=self._config.strict_paths,
        )
        try:
            project = Sanitizer(options).sanitize(generated)
        except LaunchwingError as exc:
            raise BuildError(BuildStage.SANITIZATION, str(exc), partial=partial) from exc
        partial["files"] = project.paths
        return project

    async def _configure(
        self,
        name: str,
        project: CanonicalProject,
        partial: dict[str, Any],
    ) -> tuple[CanonicalProject, KvNamespaceRef | None]:
        if not needs_kv_binding(project.files):
            return project, None
        cf_config = self._config.cloudflare
        if not cf_config.can_provision:
            logger.warning("build.kv_not_provisioned", project=name)
            return project, None

        try:
            async with CloudflareConnector(cf_config, transport=self._transport) as cf:
                synthesizer = ConfigSynthesizer(
                    cf,
                    compatibility_date=self._config.compatibility_date,
                    account_id=cf_config.account_id,
                )
                namespace = await synthesizer.ensure_namespace(name)
        except LaunchwingError as exc:
            raise BuildError(BuildStage.CONFIGURATION, str(exc), partial=partial) from exc
        partial["namespace"] = namespace.model_dump()
        return synthesizer.apply(project, project_name=name, namespace=namespace), namespace

    async def _publish(
        self,
        name: str,
        project: CanonicalProject,
        partial: dict[str, Any],
    ) -> PublishResult:
        gh = GitHubConnector(self._config.github, transport=self._transport)
        publisher = Publisher(gh)
        try:
            async with gh:
                return await publisher.publish(name, project.files)
        except PublishError as exc:
            state = publisher.state
            if state is not None:
                partial["publish_completed"] = [str(s) for s in state.completed]
            partial["publish_step"] = exc.step
            raise BuildError(BuildStage.PUBLISHING, str(exc), partial=partial) from exc
        except LaunchwingError as exc:
            raise BuildError(BuildStage.PUBLISHING, str(exc), partial=partial) from exc

    async def _deploy_url(self, name: str) -> str | None:
        cf_config = self._config.cloudflare
        if cf_config.workers_subdomain:
            return deploy_url(name, cf_config.workers_subdomain)
        if not cf_config.can_provision:
            return None
        try:
            async with CloudflareConnector(cf_config, transport=self._transport) as cf:
                subdomain = await cf.get_workers_subdomain()
        except LaunchwingError as exc:
            logger.warning("build.subdomain_lookup_failed", project=name, error=str(exc))
            return None
        return deploy_url(name, subdomain) if subdomain else None


async def build_project(
    payload: BuildPayload,
    config: BuildConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BuildResult:
    """Build *payload* with a one-off orchestrator.

    Without *config* the settings come from the environment and logging is
    configured at ``LAUNCHWING_LOG_LEVEL``. Callers passing their own
    config own the logging setup (see :func:`configure_logging`).
    """
    if config is None:
        config = BuildConfig.from_env()
        configure_logging(config.log_level)
    orchestrator = BuildOrchestrator(config, transport=transport)
    return await orchestrator.build(payload)


def build_project_sync(
    payload: BuildPayload,
    config: BuildConfig | None = None,
) -> BuildResult:
    """Synchronous wrapper around :func:`build_project`."""
    return run_sync(build_project(payload, config))
