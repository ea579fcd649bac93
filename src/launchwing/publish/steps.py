"""One function per transition of the publish state machine.

::

    create_repo -> create_blobs -> resolve_base_ref -> create_tree
        -> create_commit -> update_ref -> published

Each step reads what it needs from :class:`PublishState`, records its own
output there, and moves ``state.step`` forward. Failures are left to
:func:`run_step`, which turns them into :class:`PublishError`.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine

import structlog

from launchwing.connectors.github import GitHubConnector
from launchwing.core.constants import PublishStep
from launchwing.core.exceptions import LaunchwingError, PublishError, UpstreamError
from launchwing.utils.async_helpers import with_timeout

logger = structlog.get_logger(__name__)

FILE_MODE = "100644"


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass
class PublishState:
    repo: str
    files: dict[str, str]
    branch: str
    fallback_branch: str | None
    message: str
    step: PublishStep = PublishStep.CREATE_REPO
    completed: list[PublishStep] = field(default_factory=list)
    repo_created: bool | None = None
    blobs: dict[str, str] = field(default_factory=dict)
    base_sha: str | None = None
    base_branch: str | None = None
    tree_sha: str | None = None
    commit_sha: str | None = None
    error: str | None = None

    def advance(self, done: PublishStep, next_step: PublishStep) -> None:
        self.completed.append(done)
        self.step = next_step

    def tree_entries(self) -> list[dict[str, str]]:
        return [
            {"path": path, "mode": FILE_MODE, "type": "blob", "sha": sha}
            for path, sha in self.blobs.items()
        ]


StepFn = Callable[[GitHubConnector, PublishState], Coroutine[Any, Any, None]]


async def create_repo(gh: GitHubConnector, state: PublishState) -> None:
    state.repo_created = await gh.create_repo(state.repo)
    state.advance(PublishStep.CREATE_REPO, PublishStep.CREATE_BLOBS)


async def create_blobs(gh: GitHubConnector, state: PublishState) -> None:
    """Upload every file as a blob, one request at a time."""
    for path, content in state.files.items():
        if path in state.blobs:
            continue
        state.blobs[path] = await gh.create_blob(state.repo, content)
        logger.debug("publish.blob", repo=state.repo, path=path)
    state.advance(PublishStep.CREATE_BLOBS, PublishStep.RESOLVE_BASE_REF)


async def resolve_base_ref(gh: GitHubConnector, state: PublishState) -> None:
    branches = [state.branch]
    if state.fallback_branch and state.fallback_branch != state.branch:
        branches.append(state.fallback_branch)
    for branch in branches:
        sha = await gh.get_ref(state.repo, branch)
        if sha:
            state.base_sha = sha
            state.base_branch = branch
            break
    state.advance(PublishStep.RESOLVE_BASE_REF, PublishStep.CREATE_TREE)


async def create_tree(gh: GitHubConnector, state: PublishState) -> None:
    state.tree_sha = await gh.create_tree(
        state.repo, state.tree_entries(), base_tree=state.base_sha
    )
    state.advance(PublishStep.CREATE_TREE, PublishStep.CREATE_COMMIT)


async def create_commit(gh: GitHubConnector, state: PublishState) -> None:
    assert state.tree_sha is not None
    parents = [state.base_sha] if state.base_sha else []
    state.commit_sha = await gh.create_commit(
        state.repo, state.message, state.tree_sha, parents
    )
    state.advance(PublishStep.CREATE_COMMIT, PublishStep.UPDATE_REF)


async def update_ref(gh: GitHubConnector, state: PublishState) -> None:
    """Move the branch to the new commit, creating the ref when it is missing."""
    assert state.commit_sha is not None
    updated = await gh.update_ref(state.repo, state.branch, state.commit_sha)
    if not updated:
        logger.info(
            "publish.ref_missing",
            repo=state.repo,
            branch=state.branch,
            base_branch=state.base_branch,
        )
        await gh.create_ref(state.repo, state.branch, state.commit_sha)
    state.advance(PublishStep.UPDATE_REF, PublishStep.PUBLISHED)


STEPS: tuple[tuple[PublishStep, StepFn], ...] = (
    (PublishStep.CREATE_REPO, create_repo),
    (PublishStep.CREATE_BLOBS, create_blobs),
    (PublishStep.RESOLVE_BASE_REF, resolve_base_ref),
    (PublishStep.CREATE_TREE, create_tree),
    (PublishStep.CREATE_COMMIT, create_commit),
    (PublishStep.UPDATE_REF, update_ref),
)


async def run_step(
    step: PublishStep,
    fn: StepFn,
    gh: GitHubConnector,
    state: PublishState,
    *,
    timeout: float,
) -> None:
    """Run one transition under a deadline.

    Raises:
        PublishError: The step failed or timed out. The upstream status and
            body are carried in ``details`` when available.
    """
    start_ms = _now_ms()
    try:
        await with_timeout(fn(gh, state), timeout)
    except asyncio.TimeoutError as exc:
        state.error = f"timed out after {timeout}s"
        state.step = PublishStep.FAILED
        raise PublishError(step, state.error, details={"repo": state.repo}) from exc
    except LaunchwingError as exc:
        state.error = str(exc)
        state.step = PublishStep.FAILED
        details: dict[str, object] = {"repo": state.repo}
        if isinstance(exc, UpstreamError):
            details.update(status=exc.status, body=exc.body)
        logger.error("publish.step_failed", step=str(step), repo=state.repo, error=str(exc))
        raise PublishError(
            step, str(exc), details=details, status_code=exc.status_code
        ) from exc
    logger.info("publish.step", step=str(step), repo=state.repo, latency_ms=_now_ms() - start_ms)
