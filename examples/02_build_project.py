# RUN: python examples/02_build_project.py
"""Build and publish a project from environment configuration.

Needs AGENT_BASE_URL, PAT_GITHUB (or GITHUB_TOKEN) and GITHUB_ORG. Set
CLOUDFLARE_API_TOKEN and CLOUDFLARE_ACCOUNT_ID to provision the asset
namespace and resolve the deploy URL.

Demonstrates: BuildConfig.from_env(), configure_logging(), build_project()
and BuildError.partial.
"""

import asyncio

from launchwing import BuildConfig, BuildError, BuildPayload, build_project, configure_logging


async def main() -> None:
    config = BuildConfig.from_env()
    configure_logging(config.log_level, json=False)

    payload = BuildPayload.model_validate(
        {
            "ideaId": "plant-pal",
            "ideaSummary": {
                "name": "Plant Pal",
                "description": "Reminds you when to water each of your house plants.",
            },
            "branding": {"name": "Plant Pal", "colors": ["#16a34a", "#14532d"]},
        }
    )

    try:
        result = await build_project(payload, config)
    except BuildError as exc:
        print(f"Build failed during {exc.stage}: {exc}")
        print(f"Completed so far: {exc.partial}")
        return

    print(f"Repository : {result.repo_url}")
    print(f"Deploy URL : {result.deploy_url or '(unknown until the first deploy)'}")
    print(f"Files      : {len(result.files)}")
    for warning in result.warnings:
        print(f"Warning    : {warning}")


if __name__ == "__main__":
    asyncio.run(main())
