from __future__ import annotations

import structlog

from launchwing.connectors.cloudflare import CloudflareConnector
from launchwing.core.constants import DEFAULT_COMPATIBILITY_DATE, MANIFEST_PATH
from launchwing.core.exceptions import LaunchwingError
from launchwing.core.types import CanonicalProject, KvNamespaceRef
from launchwing.deploy.manifest import ManifestSpec, namespace_title, render_manifest

logger = structlog.get_logger(__name__)


class ConfigSynthesizer:
    """Provision deployment resources and write them into the manifest.

    ``ensure_namespace`` is idempotent: running it twice for the same
    project reuses the namespace created the first time.

    Args:
        cloudflare: A connected :class:`CloudflareConnector`.
        compatibility_date: Date written into the manifest.
        account_id: Account id written into the manifest, when known.
    """

    def __init__(
        self,
        cloudflare: CloudflareConnector,
        *,
        compatibility_date: str = DEFAULT_COMPATIBILITY_DATE,
        account_id: str | None = None,
    ) -> None:
        self._cloudflare = cloudflare
        self._compatibility_date = compatibility_date
        self._account_id = account_id

    async def ensure_namespace(self, project: str) -> KvNamespaceRef:
        """Return the ``<project>-ASSETS`` namespace, creating it if needed.

        A failed listing is logged and treated as "not found"; a failed
        creation propagates.
        """
        title = namespace_title(project)
        try:
            existing = await self._cloudflare.list_kv_namespaces()
        except LaunchwingError as exc:
            logger.warning("deploy.kv_list_failed", title=title, error=str(exc))
            existing = []

        for ns in existing:
            if ns.title == title:
                logger.info("deploy.kv_reused", title=title, namespace_id=ns.id)
                return ns
        return await self._cloudflare.create_kv_namespace(title)

    def apply(
        self,
        project: CanonicalProject,
        *,
        project_name: str,
        namespace: KvNamespaceRef | None,
    ) -> CanonicalProject:
        """Re-render the manifest of *project* with the namespace id filled in."""
        spec = ManifestSpec.for_files(
            project.files,
            name=project_name,
            compatibility_date=self._compatibility_date,
            account_id=self._account_id,
            kv_namespace_id=namespace.id if namespace else None,
        )
        files = dict(project.files)
        files[MANIFEST_PATH] = render_manifest(spec)
        warnings = [w for w in project.warnings if not w.startswith(f"{MANIFEST_PATH}:")]
        if spec.missing_namespace_id:
            warnings.append(
                f"{MANIFEST_PATH}: KV namespace id unknown; binding left commented out"
            )
        return CanonicalProject(files=files, warnings=warnings, dropped=list(project.dropped))
