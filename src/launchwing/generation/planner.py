"""Planners turn a :class:`BuildPayload` into a plan text plus a file list."""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

import httpx
import structlog

from launchwing.connectors.base import Connector, raise_for_status, response_json
from launchwing.core.config import PlannerConfig
from launchwing.core.exceptions import ConfigurationError, MalformedResponse
from launchwing.core.types import BuildPayload, FileSpec, PlannerResult
from launchwing.utils.paths import normalize_path

logger = structlog.get_logger(__name__)

_FENCE = re.compile(r"^```[\w-]*\s*|\s*```$")


class Planner(Protocol):
    async def plan(self, payload: BuildPayload) -> PlannerResult: ...


def default_target_files(payload: BuildPayload) -> list[FileSpec]:
    """The four-file web layout used when nothing better is known."""
    name = payload.branding.name or payload.idea_summary.name or "the app"
    tagline = payload.branding.tagline or ""
    return [
        FileSpec(
            path="public/index.html",
            description=f"Landing page for {name}. {tagline}".strip(),
        ),
        FileSpec(
            path="public/styles.css",
            description=(
                f"Styles using primary colour {payload.branding.primary_color} "
                f"and secondary colour {payload.branding.secondary_color}"
            ),
        ),
        FileSpec(path="public/app.js", description="Client-side behaviour for the landing page"),
        FileSpec(
            path="functions/index.ts",
            description="Worker entry handler serving static assets and /api routes",
        ),
    ]


class StaticPlanner:
    """Plans without calling anything: the payload's plan text and file list,
    or the default layout."""

    async def plan(self, payload: BuildPayload) -> PlannerResult:
        target_files = (
            list(payload.target_files)
            if payload.target_files is not None
            else default_target_files(payload)
        )
        return PlannerResult(plan=payload.plan_text, target_files=target_files)


def parse_planner_output(text: str, fallback_plan: str) -> PlannerResult:
    """Parse the planner model's JSON answer.

    Accepts ``{"plan", "targetFiles"}`` as well as the older
    ``{"files": [{"path", "description"}]}`` form.

    Raises:
        MalformedResponse: The answer is not a JSON object or lists no files.
    """
    cleaned = _FENCE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Planner returned invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponse("Planner returned a non-object JSON value")

    raw_files: Any = data.get("targetFiles") or data.get("target_files") or data.get("files")
    if not isinstance(raw_files, list):
        raise MalformedResponse("Planner answer lists no files")
    specs: list[FileSpec] = []
    for item in raw_files:
        if isinstance(item, str):
            item = {"path": item}
        if not isinstance(item, dict) or not isinstance(item.get("path"), str):
            continue
        path = normalize_path(item["path"])
        if not path:
            logger.warning("planner.item_skipped", path=item["path"])
            continue
        specs.append(FileSpec(path=path, description=str(item.get("description") or "")))

    plan = data.get("plan")
    if not isinstance(plan, str) or not plan.strip():
        plan = fallback_plan
    return PlannerResult(plan=plan, target_files=specs)


class ChatPlanner(Connector):
    """Plans with an OpenAI-compatible chat-completions endpoint.

    Usage::

        async with ChatPlanner(PlannerConfig(api_key="sk-...")) as planner:
            result = await planner.plan(payload)
    """

    SYSTEM_PROMPT = "You output only JSON. No prose."

    def __init__(
        self,
        config: PlannerConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.api_key:
            raise ConfigurationError("Planner API key is required")
        super().__init__(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
        )
        self._config = config

    def _build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._config.api_key}",
        }

    def _prompt(self, payload: BuildPayload) -> str:
        return (
            "Plan all files for this project.\n"
            'Return JSON: {"plan": "<summary>", "targetFiles": '
            '[{"path": "public/index.html", "description": "..."}]}\n\n'
            f"Project description:\n{payload.plan_text}"
        )

    async def plan(self, payload: BuildPayload) -> PlannerResult:
        resp = await self._request(
            "POST",
            "/chat/completions",
            json={
                "model": self._config.model,
                "temperature": self._config.temperature,
                "messages": [
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": self._prompt(payload)},
                ],
            },
        )
        raise_for_status(resp, "plan project files")
        data = response_json(resp, "plan project files")
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponse("Planner response has no message content") from exc
        result = parse_planner_output(content, payload.plan_text)
        logger.info("planner.planned", files=len(result.target_files))
        return result
