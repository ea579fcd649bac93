"""GitHub connector: repository creation and the Git data API."""

from __future__ import annotations

import base64
from typing import Any

import httpx
import structlog

from launchwing.connectors.base import Connector, raise_for_status, response_json
from launchwing.core.config import GitHubConfig
from launchwing.core.constants import USER_AGENT
from launchwing.core.exceptions import ConfigurationError, MalformedResponse

logger = structlog.get_logger(__name__)


def _is_name_taken(resp: httpx.Response) -> bool:
    """True for the 422 GitHub sends when the repository name already exists."""
    if resp.status_code != 422:
        return False
    text = resp.text.lower()
    return "already exists" in text or "name already" in text


def _sha(data: Any, action: str) -> str:
    sha = data.get("sha") if isinstance(data, dict) else None
    if not isinstance(sha, str) or not sha:
        raise MalformedResponse(f"{action} response carries no sha")
    return sha


class GitHubConnector(Connector):
    """Connector for the GitHub REST API v3.

    Covers the calls needed to publish a file set as one commit: create the
    repository, then blobs, a tree, a commit, and finally move the branch ref.

    Usage::

        async with GitHubConnector(GitHubConfig(token="ghp_xxx", org="acme")) as gh:
            created = await gh.create_repo("mvp-demo")
            sha = await gh.create_blob("mvp-demo", "hello")
    """

    DEFAULT_BASE_URL = "https://api.github.com"

    def __init__(
        self,
        config: GitHubConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.token:
            raise ConfigurationError("GitHub token is required")
        if not config.owner:
            raise ConfigurationError("GitHub org or username must be provided")
        super().__init__(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )
        self._config = config

    @property
    def config(self) -> GitHubConfig:
        return self._config

    @property
    def owner(self) -> str:
        owner = self._config.owner
        assert owner is not None  # checked in __init__
        return owner

    def _build_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._config.token}",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def repo_url(self, repo: str) -> str:
        return f"{self._config.web_url.rstrip('/')}/{self.owner}/{repo}"

    def _git(self, repo: str, suffix: str) -> str:
        return f"/repos/{self.owner}/{repo}/git/{suffix}"

    # ------------------------------------------------------------------ #
    # Repositories
    # ------------------------------------------------------------------ #

    async def create_repo(self, name: str) -> bool:
        """Create a repository under the org (or the authenticated user).

        Returns:
            ``True`` when the repository was created, ``False`` when it
            already existed.
        """
        path = f"/orgs/{self._config.org}/repos" if self._config.org else "/user/repos"
        resp = await self._request(
            "POST",
            path,
            json={
                "name": name,
                "private": self._config.private,
                "auto_init": self._config.auto_init,
            },
        )
        if _is_name_taken(resp):
            logger.info("github.repo_exists", owner=self.owner, repo=name)
            return False
        raise_for_status(resp, "create repository")
        logger.info("github.repo_created", owner=self.owner, repo=name)
        return True

    # ------------------------------------------------------------------ #
    # Git data API
    # ------------------------------------------------------------------ #

    async def create_blob(self, repo: str, content: str) -> str:
        """Upload *content* as a base64 blob and return its sha."""
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        resp = await self._request(
            "POST",
            self._git(repo, "blobs"),
            json={"content": encoded, "encoding": "base64"},
        )
        raise_for_status(resp, "create blob")
        return _sha(response_json(resp, "create blob"), "create blob")

    async def get_ref(self, repo: str, branch: str) -> str | None:
        """Return the commit sha at the tip of *branch*, or ``None`` if absent.

        An empty repository answers 409; that also means no base commit.
        """
        resp = await self._request("GET", self._git(repo, f"ref/heads/{branch}"))
        if resp.status_code in (404, 409):
            return None
        raise_for_status(resp, f"read ref heads/{branch}")
        data = response_json(resp, "read ref")
        sha = (data.get("object") or {}).get("sha") if isinstance(data, dict) else None
        return sha if isinstance(sha, str) and sha else None

    async def create_tree(
        self,
        repo: str,
        entries: list[dict[str, str]],
        base_tree: str | None = None,
    ) -> str:
        body: dict[str, Any] = {"tree": entries}
        if base_tree:
            body["base_tree"] = base_tree
        resp = await self._request("POST", self._git(repo, "trees"), json=body)
        raise_for_status(resp, "create tree")
        return _sha(response_json(resp, "create tree"), "create tree")

    async def create_commit(
        self,
        repo: str,
        message: str,
        tree: str,
        parents: list[str],
    ) -> str:
        resp = await self._request(
            "POST",
            self._git(repo, "commits"),
            json={"message": message, "tree": tree, "parents": parents},
        )
        raise_for_status(resp, "create commit")
        return _sha(response_json(resp, "create commit"), "create commit")

    async def update_ref(self, repo: str, branch: str, sha: str) -> bool:
        """Force-move ``heads/<branch>`` to *sha*.

        Returns:
            ``False`` when the ref does not exist yet (GitHub answers 404 or
            422 for that), ``True`` once updated.
        """
        resp = await self._request(
            "PATCH",
            self._git(repo, f"refs/heads/{branch}"),
            json={"sha": sha, "force": True},
        )
        if resp.status_code in (404, 422):
            return False
        raise_for_status(resp, f"update ref heads/{branch}")
        return True

    async def create_ref(self, repo: str, branch: str, sha: str) -> None:
        resp = await self._request(
            "POST",
            self._git(repo, "refs"),
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        raise_for_status(resp, f"create ref heads/{branch}")
