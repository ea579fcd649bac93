"""HTTP connectors for the services a build publishes to."""

from __future__ import annotations

from launchwing.connectors.base import Connector
from launchwing.connectors.cloudflare import CloudflareConnector
from launchwing.connectors.github import GitHubConnector

__all__ = [
    "Connector",
    "CloudflareConnector",
    "GitHubConnector",
]
