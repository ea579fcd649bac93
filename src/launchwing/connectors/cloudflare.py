"""Cloudflare connector: Workers KV namespaces and the workers.dev subdomain."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from launchwing.connectors.base import Connector, raise_for_status, response_json
from launchwing.core.config import CloudflareConfig
from launchwing.core.exceptions import ConfigurationError, MalformedResponse
from launchwing.core.types import KvNamespaceRef

logger = structlog.get_logger(__name__)

_PAGE_SIZE = 100
_MAX_PAGES = 50


def _envelope_result(data: Any, action: str) -> Any:
    """Unwrap the ``{"success", "result", "errors"}`` envelope of the v4 API."""
    if not isinstance(data, dict) or "result" not in data:
        raise MalformedResponse(f"{action}: unexpected response shape")
    if data.get("success") is False:
        raise MalformedResponse(f"{action}: {data.get('errors')}")
    return data["result"]


class CloudflareConnector(Connector):
    """Connector for the Cloudflare v4 API, scoped to one account.

    Usage::

        config = CloudflareConfig(api_token="cf_xxx", account_id="abc123")
        async with CloudflareConnector(config) as cf:
            namespaces = await cf.list_kv_namespaces()
    """

    DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"

    def __init__(
        self,
        config: CloudflareConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.can_provision:
            raise ConfigurationError(
                "Cloudflare API token and account id are required"
            )
        super().__init__(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )
        self._config = config

    @property
    def config(self) -> CloudflareConfig:
        return self._config

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_token}",
            "Content-Type": "application/json",
        }

    def _account(self, suffix: str) -> str:
        return f"/accounts/{self._config.account_id}/{suffix}"

    async def list_kv_namespaces(self) -> list[KvNamespaceRef]:
        """List every KV namespace in the account, following pagination."""
        namespaces: list[KvNamespaceRef] = []
        page = 1
        while page <= _MAX_PAGES:
            resp = await self._request(
                "GET",
                self._account("storage/kv/namespaces"),
                params={"per_page": _PAGE_SIZE, "page": page},
            )
            raise_for_status(resp, "list KV namespaces")
            data = response_json(resp, "list KV namespaces")
            result = _envelope_result(data, "list KV namespaces")
            if not isinstance(result, list):
                raise MalformedResponse("list KV namespaces: result is not a list")
            for item in result:
                if isinstance(item, dict) and item.get("id") and item.get("title"):
                    namespaces.append(
                        KvNamespaceRef(title=str(item["title"]), id=str(item["id"]))
                    )
            info = data.get("result_info") or {}
            total_pages = info.get("total_pages")
            if not isinstance(total_pages, int) or page >= total_pages or not result:
                break
            page += 1
        return namespaces

    async def create_kv_namespace(self, title: str) -> KvNamespaceRef:
        resp = await self._request(
            "POST",
            self._account("storage/kv/namespaces"),
            json={"title": title},
        )
        raise_for_status(resp, "create KV namespace")
        result = _envelope_result(
            response_json(resp, "create KV namespace"), "create KV namespace"
        )
        ns_id = result.get("id") if isinstance(result, dict) else None
        if not ns_id:
            raise MalformedResponse("create KV namespace: no id in response")
        logger.info("cloudflare.kv_created", title=title, namespace_id=ns_id)
        return KvNamespaceRef(title=title, id=str(ns_id), created=True)

    async def get_workers_subdomain(self) -> str | None:
        """Return the account's ``<sub>.workers.dev`` subdomain, if one is set."""
        resp = await self._request("GET", self._account("workers/subdomain"))
        if resp.status_code == 404:
            return None
        raise_for_status(resp, "read workers subdomain")
        result = _envelope_result(
            response_json(resp, "read workers subdomain"), "read workers subdomain"
        )
        sub = result.get("subdomain") if isinstance(result, dict) else None
        return str(sub) if sub else None
