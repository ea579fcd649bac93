from __future__ import annotations

from typing import Mapping

import structlog

from launchwing.connectors.github import GitHubConnector
from launchwing.core.constants import PublishStep
from launchwing.core.exceptions import PreconditionFailed
from launchwing.core.types import PublishResult
from launchwing.publish.steps import STEPS, PublishState, run_step

logger = structlog.get_logger(__name__)


class Publisher:
    """Publish a file map to a GitHub repository as a single commit.

    Steps run strictly in order and stop at the first failure; nothing is
    rolled back. A partially published repository (blobs uploaded, ref not
    moved) is left as-is, and :attr:`state` tells how far it got.

    Usage::

        async with GitHubConnector(GitHubConfig(token="ghp_xxx", org="acme")) as gh:
            result = await Publisher(gh).publish("mvp-todo", project.files)
            print(result.repo_url)
    """

    def __init__(self, github: GitHubConnector) -> None:
        self._github = github
        self._state: PublishState | None = None

    def __repr__(self) -> str:
        step = self._state.step if self._state else None
        return f"Publisher(owner={self._github.owner!r}, step={step!r})"

    @property
    def state(self) -> PublishState | None:
        """State of the last (or current) :meth:`publish` call."""
        return self._state

    async def publish(
        self,
        repo: str,
        files: Mapping[str, str],
        *,
        message: str | None = None,
    ) -> PublishResult:
        """Create *repo* if needed and commit *files* to the configured branch.

        The commit always lands on ``branch``, the one the deploy workflow
        watches. When only ``fallback_branch`` exists (an older repo on
        ``master``), its tip becomes the parent and ``branch`` is created
        from the new commit, so ``branch`` starts one commit ahead of the
        fallback. The fallback ref itself is never moved.

        Raises:
            PreconditionFailed: *files* is empty.
            PublishError: A step failed; ``.step`` names it.
        """
        if not files:
            raise PreconditionFailed("Nothing to publish", code="no_files")
        config = self._github.config
        state = PublishState(
            repo=repo,
            files=dict(files),
            branch=config.branch,
            fallback_branch=config.fallback_branch,
            message=message or config.commit_message,
        )
        self._state = state
        logger.info("publish.start", owner=self._github.owner, repo=repo, files=len(files))

        for step, fn in STEPS:
            timeout = config.timeout
            if step is PublishStep.CREATE_BLOBS:
                timeout = config.timeout * len(state.files)
            elif step is PublishStep.RESOLVE_BASE_REF:
                timeout = config.timeout * 2
            await run_step(step, fn, self._github, state, timeout=timeout)

        assert state.commit_sha is not None
        result = PublishResult(
            repo_url=self._github.repo_url(repo),
            branch=state.branch,
            commit_sha=state.commit_sha,
            repo_created=bool(state.repo_created),
        )
        logger.info("publish.done", repo_url=result.repo_url, commit=state.commit_sha)
        return result
