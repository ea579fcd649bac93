from launchwing.deploy.manifest import (
    ManifestSpec,
    namespace_title,
    needs_kv_binding,
    project_name,
    render_manifest,
)
from launchwing.deploy.synthesizer import ConfigSynthesizer

__all__ = [
    "ConfigSynthesizer",
    "ManifestSpec",
    "namespace_title",
    "needs_kv_binding",
    "project_name",
    "render_manifest",
]
