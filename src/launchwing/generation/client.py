"""HTTP client for the external code-generation service."""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog

from launchwing.connectors.base import Connector, raise_for_status, response_json
from launchwing.core.config import GeneratorConfig
from launchwing.core.exceptions import PreconditionFailed
from launchwing.core.types import ChatMessage, FileSpec, GeneratedFile
from launchwing.generation.decoder import decode_generated_files
from launchwing.resilience.retry import RetryPolicy

logger = structlog.get_logger(__name__)

# Statuses meaning "this endpoint does not exist here", which send the
# request to the fallback endpoint instead.
_MISSING_ENDPOINT = (404, 405)


class CodeGeneratorClient(Connector):
    """Generates file contents for one batch of :class:`FileSpec`.

    Each call is one ``POST {base_url}/generate-batch`` bounded by
    ``GeneratorConfig.timeout``. Timeouts, connection failures and
    gateway-style statuses are retried with exponential backoff; 4xx
    rejections and undecodable bodies are not.

    Usage::

        async with CodeGeneratorClient(GeneratorConfig(base_url="http://agent")) as gen:
            files = await gen.generate(specs, plan="A todo app")
    """

    def __init__(
        self,
        config: GeneratorConfig,
        *,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )
        self._config = config
        self._retry = retry_policy or config.retry_policy()

    def __repr__(self) -> str:
        return f"CodeGeneratorClient(base_url={self._base_url!r})"

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            **self._config.extra_headers,
        }
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    def build_request_body(
        self,
        target_files: Sequence[FileSpec],
        *,
        plan: str,
        already_generated: Sequence[GeneratedFile] | None = None,
        messages: Sequence[ChatMessage] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "plan": plan,
            "targetFiles": [spec.to_wire() for spec in target_files],
        }
        if already_generated and self._config.include_context:
            body["alreadyGenerated"] = [f.to_wire() for f in already_generated]
        if messages:
            body["messages"] = [m.model_dump() for m in messages]
        return body

    async def generate(
        self,
        target_files: Sequence[FileSpec],
        *,
        plan: str,
        already_generated: Sequence[GeneratedFile] | None = None,
        messages: Sequence[ChatMessage] | None = None,
    ) -> list[GeneratedFile]:
        """Generate contents for *target_files*.

        Args:
            target_files: The batch to generate. Must not be empty.
            plan: Shared plan text sent with every batch.
            already_generated: Files from earlier batches, sent as context.
            messages: Conversation transcript, sent when non-empty.

        Returns:
            The decoded files, in the order the generator returned them.

        Raises:
            PreconditionFailed: *target_files* is empty.
            RequestRejected: The generator answered with a 4xx rejection.
            UpstreamError: A non-success status, after retries where allowed.
            MalformedResponse: The body matches no tolerated shape.
        """
        if not target_files:
            raise PreconditionFailed(
                "Refusing to call the generator with zero target files",
                code="no_target_files",
            )
        body = self.build_request_body(
            target_files,
            plan=plan,
            already_generated=already_generated,
            messages=messages,
        )
        logger.info(
            "generator.request",
            files=len(target_files),
            context_files=len(body.get("alreadyGenerated", [])),
        )
        files = await self._retry.execute(self._post_once, body)
        logger.info("generator.response", files=len(files))
        return files

    async def _post_once(self, body: dict[str, Any]) -> list[GeneratedFile]:
        resp = await self._request("POST", self._config.batch_endpoint, json=body)
        fallback = self._config.fallback_endpoint
        if resp.status_code in _MISSING_ENDPOINT and fallback:
            logger.info(
                "generator.endpoint_fallback",
                status=resp.status_code,
                endpoint=fallback,
            )
            resp = await self._request("POST", fallback, json=body)
        raise_for_status(resp, "generate")
        if not resp.content.strip():
            return []
        data = response_json(resp, "generate")
        return decode_generated_files(data, expect_content=self._config.expect_content)
