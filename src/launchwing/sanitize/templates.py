"""Default files backfilled into a project when the generator left them out."""

from __future__ import annotations

import html
import json
import re

from launchwing.core.types import Branding

DEFAULT_WORKFLOW = """\
name: Deploy to Cloudflare Workers

on:
  push:
    branches: [main]

jobs:
  deploy:
    runs-on: ubuntu-latest
    steps:
      - name: Checkout
        uses: actions/checkout@v4

      - name: Deploy with Wrangler v4
        uses: cloudflare/wrangler-action@v3
        with:
          apiToken: ${{ secrets.CLOUDFLARE_API_TOKEN }}
          wranglerVersion: '4'
"""

_LEGACY_TOKEN = re.compile(r"\bCF_API_TOKEN\b")
_WRANGLER_ACTION = re.compile(r"uses:\s*cloudflare/wrangler-action@")
_WRANGLER_VERSION = re.compile(r"^\s*wranglerVersion\s*:", re.MULTILINE)
_API_TOKEN_LINE = re.compile(r"^(?P<indent>[ \t]*)apiToken\s*:.*$", re.MULTILINE)


def patch_workflow(content: str) -> str:
    """Bring a generated deploy workflow in line with the deploy conventions.

    Renames the legacy ``CF_API_TOKEN`` secret and pins wrangler v4. A
    workflow that does not use the wrangler action is replaced outright.
    """
    if not _WRANGLER_ACTION.search(content):
        return DEFAULT_WORKFLOW
    patched = _LEGACY_TOKEN.sub("CLOUDFLARE_API_TOKEN", content)
    if not _WRANGLER_VERSION.search(patched):
        match = _API_TOKEN_LINE.search(patched)
        if match:
            line = f"\n{match.group('indent')}wranglerVersion: '4'"
            patched = patched[: match.end()] + line + patched[match.end():]
    patched = patched.strip("\n")
    return patched + "\n"


def _display_name(branding: Branding, project_name: str) -> str:
    return branding.name or project_name


def default_index(branding: Branding, project_name: str) -> str:
    name = html.escape(_display_name(branding, project_name))
    tagline = html.escape(branding.tagline or "")
    logo = ""
    if branding.logo_url:
        alt = html.escape(branding.logo_desc or branding.name or "logo", quote=True)
        logo = f'\n      <img class="logo" src="{html.escape(branding.logo_url, quote=True)}" alt="{alt}">'
    return f"""\
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{name}</title>
    <link rel="stylesheet" href="/styles.css">
  </head>
  <body>
    <header class="hero">{logo}
      <h1>{name}</h1>
      <p class="tagline">{tagline}</p>
    </header>
    <main id="app"></main>
    <footer>
      <small>&copy; <span data-year></span> {name}</small>
    </footer>
    <script src="/app.js" defer></script>
  </body>
</html>
"""


def default_stylesheet(branding: Branding) -> str:
    return f"""\
:root {{
  --primary: {branding.primary_color};
  --secondary: {branding.secondary_color};
}}

* {{
  box-sizing: border-box;
}}

body {{
  margin: 0;
  font-family: system-ui, -apple-system, "Segoe UI", sans-serif;
  color: var(--secondary);
  background: #ffffff;
}}

.hero {{
  padding: 4rem 1.5rem;
  text-align: center;
  color: #ffffff;
  background: var(--primary);
}}

.hero .logo {{
  max-height: 64px;
}}

.tagline {{
  opacity: 0.85;
}}

main {{
  max-width: 960px;
  margin: 0 auto;
  padding: 2rem 1.5rem;
}}

footer {{
  padding: 2rem 1.5rem;
  text-align: center;
}}
"""


DEFAULT_SCRIPT = """\
document.addEventListener("DOMContentLoaded", () => {
  const year = document.querySelector("[data-year]");
  if (year) {
    year.textContent = String(new Date().getFullYear());
  }
});
"""


def default_package_manifest(project_name: str) -> str:
    manifest = {
        "name": project_name,
        "version": "0.1.0",
        "private": True,
        "scripts": {
            "dev": "wrangler dev",
            "deploy": "wrangler deploy",
        },
        "devDependencies": {
            "wrangler": "^4.0.0",
        },
    }
    return json.dumps(manifest, indent=2) + "\n"


def ensure_package_manifest(content: str, project_name: str) -> str:
    """Keep *content* if it is a JSON object, else return the default manifest."""
    try:
        value = json.loads(content)
    except ValueError:
        return default_package_manifest(project_name)
    if not isinstance(value, dict):
        return default_package_manifest(project_name)
    return content
