"""Tests for deploy/synthesizer.py against the in-memory Cloudflare API."""
from __future__ import annotations

import httpx

from launchwing.connectors.cloudflare import CloudflareConnector
from launchwing.core.config import CloudflareConfig
from launchwing.core.constants import INDEX_PATH, MANIFEST_PATH
from launchwing.core.types import GeneratedFile, KvNamespaceRef
from launchwing.deploy.synthesizer import ConfigSynthesizer
from launchwing.sanitize.sanitizer import Sanitizer, SanitizerOptions

from conftest import FakeCloudflare, FakeRemote


def _project():
    files = [GeneratedFile(path=INDEX_PATH, content="<!DOCTYPE html><html></html>")]
    return Sanitizer(SanitizerOptions(project_name="mvp-demo")).sanitize(files)


async def test_creates_namespace_once(
    fake_remote: FakeRemote,
    fake_cloudflare: FakeCloudflare,
    cloudflare_config: CloudflareConfig,
) -> None:
    async with CloudflareConnector(cloudflare_config, transport=fake_remote.transport()) as cf:
        synth = ConfigSynthesizer(cf)
        first = await synth.ensure_namespace("mvp-demo")
        second = await synth.ensure_namespace("mvp-demo")

    assert first.title == "mvp-demo-ASSETS"
    assert first.created is True
    assert second.id == first.id
    assert second.created is False
    assert len(fake_cloudflare.namespaces) == 1


async def test_reuses_namespace_on_a_later_page(
    fake_remote: FakeRemote,
    fake_cloudflare: FakeCloudflare,
    cloudflare_config: CloudflareConfig,
) -> None:
    fake_cloudflare.namespaces = [{"id": f"old-{i}", "title": f"other-{i}"} for i in range(150)]
    fake_cloudflare.namespaces.append({"id": "mine", "title": "mvp-demo-ASSETS"})

    async with CloudflareConnector(cloudflare_config, transport=fake_remote.transport()) as cf:
        ns = await ConfigSynthesizer(cf).ensure_namespace("mvp-demo")

    assert ns.id == "mine"
    assert fake_remote.calls("POST") == []


async def test_list_failure_falls_through_to_create(
    fake_remote: FakeRemote,
    fake_cloudflare: FakeCloudflare,
    cloudflare_config: CloudflareConfig,
) -> None:
    fake_remote.route("GET", r"storage/kv/namespaces$", (500, "oops"))

    async with CloudflareConnector(cloudflare_config, transport=fake_remote.transport()) as cf:
        ns = await ConfigSynthesizer(cf).ensure_namespace("mvp-demo")

    assert ns.created is True
    assert len(fake_remote.calls("POST", r"storage/kv/namespaces$")) == 1


def test_apply_fills_in_namespace_id(cloudflare_config: CloudflareConfig) -> None:
    project = _project()
    assert any(w.startswith(f"{MANIFEST_PATH}:") for w in project.warnings)

    cf = CloudflareConnector(cloudflare_config, transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    synth = ConfigSynthesizer(cf, compatibility_date="2025-01-01", account_id="acc123")
    updated = synth.apply(
        project,
        project_name="mvp-demo",
        namespace=KvNamespaceRef(title="mvp-demo-ASSETS", id="ns-7"),
    )

    manifest = updated.files[MANIFEST_PATH]
    assert 'id = "ns-7"' in manifest
    assert 'compatibility_date = "2025-01-01"' in manifest
    assert 'account_id = "acc123"' in manifest
    assert not any(w.startswith(f"{MANIFEST_PATH}:") for w in updated.warnings)
    assert project.files[MANIFEST_PATH] != manifest
    assert {p for p in updated.files if p != MANIFEST_PATH} == {
        p for p in project.files if p != MANIFEST_PATH
    }


def test_apply_without_namespace_keeps_warning(cloudflare_config: CloudflareConfig) -> None:
    cf = CloudflareConnector(cloudflare_config)
    updated = ConfigSynthesizer(cf).apply(_project(), project_name="mvp-demo", namespace=None)
    assert "# id = " in updated.files[MANIFEST_PATH]
    assert sum(w.startswith(f"{MANIFEST_PATH}:") for w in updated.warnings) == 1
