"""Shared test fixtures."""
from __future__ import annotations

import base64
import json
import re
from typing import Any, Callable

import httpx
import pytest

from launchwing.core.config import (
    BuildConfig,
    CloudflareConfig,
    GeneratorConfig,
    GitHubConfig,
)

GENERATOR_URL = "http://agent.test"
ACCOUNT_ID = "acc123"
OWNER = "acme"

Route = Callable[[httpx.Request], httpx.Response]


def _build(item: Any) -> httpx.Response:
    status, body = item
    if body is None:
        return httpx.Response(status, content=b"")
    if isinstance(body, (bytes, str)):
        return httpx.Response(status, content=body)
    return httpx.Response(status, json=body)


def _as_route(responder: Any) -> Route:
    if callable(responder):
        return responder
    if isinstance(responder, list):
        queue = list(responder)

        def sequence(request: httpx.Request) -> httpx.Response:
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            return _build(item)

        return sequence
    return lambda request: _build(responder)


class FakeRemote:
    """Routes requests by method and ``host + path`` regex; records every request.

    Responders are a callable, a ``(status, body)`` tuple, or a list of
    tuples served in order (the last one repeats). Later routes win.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: list[tuple[str, re.Pattern[str], Route]] = []

    def route(self, method: str, pattern: str, responder: Any) -> None:
        self._routes.insert(0, (method.upper(), re.compile(pattern), _as_route(responder)))

    def calls(self, method: str | None = None, pattern: str | None = None) -> list[httpx.Request]:
        found = []
        for request in self.requests:
            if method and request.method != method.upper():
                continue
            if pattern and not re.search(pattern, f"{request.url.host}{request.url.path}"):
                continue
            found.append(request)
        return found

    def transport(self) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            target = f"{request.url.host}{request.url.path}"
            for method, pattern, route in self._routes:
                if method == request.method and pattern.search(target):
                    return route(request)
            raise AssertionError(f"unexpected request {request.method} {target}")

        return httpx.MockTransport(handler)


def body_of(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


class FakeGitHub:
    """In-memory GitHub covering repo creation and the Git data API."""

    def __init__(self, remote: FakeRemote, owner: str = OWNER) -> None:
        self.owner = owner
        self.repos: set[str] = set()
        self.refs: dict[tuple[str, str], str] = {}
        self.blobs: dict[str, str] = {}
        self.trees: dict[str, dict[str, Any]] = {}
        self.commits: dict[str, dict[str, Any]] = {}
        self._counter = 0
        repo = r"/repos/[^/]+/(?P<repo>[^/]+)/git"
        remote.route("POST", rf"api\.github\.com/(orgs/[^/]+|user)/repos$", self._create_repo)
        remote.route("POST", rf"api\.github\.com{repo}/blobs$", self._create_blob)
        remote.route("GET", rf"api\.github\.com{repo}/ref/heads/(?P<branch>.+)$", self._get_ref)
        remote.route("POST", rf"api\.github\.com{repo}/trees$", self._create_tree)
        remote.route("POST", rf"api\.github\.com{repo}/commits$", self._create_commit)
        remote.route("PATCH", rf"api\.github\.com{repo}/refs/heads/(?P<branch>.+)$", self._update_ref)
        remote.route("POST", rf"api\.github\.com{repo}/refs$", self._create_ref)

    def _sha(self, kind: str) -> str:
        self._counter += 1
        return f"{kind}-{self._counter}"

    @staticmethod
    def _match(request: httpx.Request, pattern: str) -> re.Match[str]:
        match = re.search(pattern, request.url.path)
        assert match is not None
        return match

    def _create_repo(self, request: httpx.Request) -> httpx.Response:
        data = body_of(request)
        name = data["name"]
        if name in self.repos:
            return httpx.Response(
                422,
                json={
                    "message": "Repository creation failed.",
                    "errors": [{"field": "name", "message": "name already exists on this account"}],
                },
            )
        self.repos.add(name)
        if data.get("auto_init"):
            self.refs[(name, "main")] = self._sha("init")
        return httpx.Response(201, json={"name": name, "full_name": f"{self.owner}/{name}"})

    def _create_blob(self, request: httpx.Request) -> httpx.Response:
        data = body_of(request)
        assert data["encoding"] == "base64"
        sha = self._sha("blob")
        self.blobs[sha] = base64.b64decode(data["content"]).decode("utf-8")
        return httpx.Response(201, json={"sha": sha})

    def _get_ref(self, request: httpx.Request) -> httpx.Response:
        m = self._match(request, r"/repos/[^/]+/(?P<repo>[^/]+)/git/ref/heads/(?P<branch>.+)$")
        sha = self.refs.get((m["repo"], m["branch"]))
        if sha is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"ref": f"refs/heads/{m['branch']}", "object": {"sha": sha}})

    def _create_tree(self, request: httpx.Request) -> httpx.Response:
        sha = self._sha("tree")
        self.trees[sha] = body_of(request)
        return httpx.Response(201, json={"sha": sha})

    def _create_commit(self, request: httpx.Request) -> httpx.Response:
        sha = self._sha("commit")
        self.commits[sha] = body_of(request)
        return httpx.Response(201, json={"sha": sha})

    def _update_ref(self, request: httpx.Request) -> httpx.Response:
        m = self._match(request, r"/repos/[^/]+/(?P<repo>[^/]+)/git/refs/heads/(?P<branch>.+)$")
        key = (m["repo"], m["branch"])
        if key not in self.refs:
            return httpx.Response(422, json={"message": "Reference does not exist"})
        self.refs[key] = body_of(request)["sha"]
        return httpx.Response(200, json={"object": {"sha": self.refs[key]}})

    def _create_ref(self, request: httpx.Request) -> httpx.Response:
        m = self._match(request, r"/repos/[^/]+/(?P<repo>[^/]+)/git/refs$")
        data = body_of(request)
        branch = data["ref"].removeprefix("refs/heads/")
        self.refs[(m["repo"], branch)] = data["sha"]
        return httpx.Response(201, json={"ref": data["ref"], "object": {"sha": data["sha"]}})

    def published_files(self, repo: str, branch: str = "main") -> dict[str, str]:
        """Contents of the tree committed at the tip of *branch*."""
        commit = self.commits[self.refs[(repo, branch)]]
        tree = self.trees[commit["tree"]]
        return {entry["path"]: self.blobs[entry["sha"]] for entry in tree["tree"]}


class FakeCloudflare:
    """In-memory Cloudflare v4 API: KV namespaces and the workers subdomain."""

    def __init__(self, remote: FakeRemote, subdomain: str | None = "acme") -> None:
        self.namespaces: list[dict[str, str]] = []
        self.subdomain = subdomain
        self._counter = 0
        base = rf"api\.cloudflare\.com/client/v4/accounts/{ACCOUNT_ID}"
        remote.route("GET", rf"{base}/storage/kv/namespaces$", self._list)
        remote.route("POST", rf"{base}/storage/kv/namespaces$", self._create)
        remote.route("GET", rf"{base}/workers/subdomain$", self._subdomain)

    def _list(self, request: httpx.Request) -> httpx.Response:
        per_page = int(request.url.params.get("per_page", "20"))
        page = int(request.url.params.get("page", "1"))
        start = (page - 1) * per_page
        items = self.namespaces[start : start + per_page]
        total_pages = max(1, -(-len(self.namespaces) // per_page))
        return httpx.Response(
            200,
            json={
                "success": True,
                "errors": [],
                "result": items,
                "result_info": {"page": page, "per_page": per_page, "total_pages": total_pages},
            },
        )

    def _create(self, request: httpx.Request) -> httpx.Response:
        self._counter += 1
        ns = {"id": f"ns-{self._counter}", "title": body_of(request)["title"]}
        self.namespaces.append(ns)
        return httpx.Response(200, json={"success": True, "errors": [], "result": ns})

    def _subdomain(self, request: httpx.Request) -> httpx.Response:
        if self.subdomain is None:
            return httpx.Response(404, json={"success": False, "errors": [], "result": None})
        return httpx.Response(
            200, json={"success": True, "errors": [], "result": {"subdomain": self.subdomain}}
        )


class FakeGenerator:
    """Code generator answering ``/generate-batch`` from a path -> content map."""

    def __init__(self, remote: FakeRemote, contents: dict[str, str] | None = None) -> None:
        self.contents = contents or {}
        self.bodies: list[dict[str, Any]] = []
        remote.route("POST", r"agent\.test/generate-batch$", self._generate)

    def _generate(self, request: httpx.Request) -> httpx.Response:
        body = body_of(request)
        self.bodies.append(body)
        files = [
            {
                "path": spec["path"],
                "content": self.contents.get(spec["path"], f"// {spec['path']}\nconst x = 1;\n"),
            }
            for spec in body["targetFiles"]
        ]
        return httpx.Response(200, json={"files": files})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def fake_github(fake_remote: FakeRemote) -> FakeGitHub:
    return FakeGitHub(fake_remote)


@pytest.fixture
def fake_cloudflare(fake_remote: FakeRemote) -> FakeCloudflare:
    return FakeCloudflare(fake_remote)


@pytest.fixture
def fake_generator(fake_remote: FakeRemote) -> FakeGenerator:
    return FakeGenerator(fake_remote)


@pytest.fixture
def generator_config() -> GeneratorConfig:
    return GeneratorConfig(base_url=GENERATOR_URL, backoff_base=0.0, timeout=5.0)


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(token="ghp_test", org=OWNER, timeout=5.0)


@pytest.fixture
def cloudflare_config() -> CloudflareConfig:
    return CloudflareConfig(api_token="cf_test", account_id=ACCOUNT_ID, timeout=5.0)


@pytest.fixture
def build_config(
    generator_config: GeneratorConfig,
    github_config: GitHubConfig,
    cloudflare_config: CloudflareConfig,
) -> BuildConfig:
    return BuildConfig(
        generator=generator_config,
        github=github_config,
        cloudflare=cloudflare_config,
        batch_size=2,
    )
