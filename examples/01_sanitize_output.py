# RUN: python examples/01_sanitize_output.py
"""Sanitize raw generator output into a deployable project, fully offline.

Demonstrates: Sanitizer, SanitizerOptions, project_name() and the warnings
collected while cleaning chat-style generator output.
"""

from launchwing import Branding, GeneratedFile, Sanitizer, SanitizerOptions, project_name

RAW = [
    GeneratedFile(
        path="frontend/index.html",
        content=(
            "Here is your landing page:\n```html\n<!DOCTYPE html>\n"
            "<html><body><h1>Plant Pal</h1></body></html>\n```\n"
        ),
    ),
    GeneratedFile(path="frontend/site.css", content="```css\nh1 {\n  color: #16a34a;\n}\n```"),
    GeneratedFile(
        path="backend/chunk_1.ts",
        content=(
            "export default {\n  async fetch(request, env) {\n"
            "    return new Response('hi');\n  },\n};\n"
        ) * 2,
    ),
    GeneratedFile(path="wrangler.json", content="{}"),
]


def main() -> None:
    # 1. Derive the deployable name from the idea id
    name = project_name("Plant Pal")
    print(f"Project : {name}")

    # 2. Clean, route and complete the generated files
    sanitizer = Sanitizer(
        SanitizerOptions(
            project_name=name,
            branding=Branding(name="Plant Pal", palette={"primary": "#16a34a"}),
        )
    )
    project = sanitizer.sanitize(RAW)

    # 3. Inspect the canonical layout
    for path in project.paths:
        print(f"  {path} ({len(project.files[path])} chars)")
    print(f"\nDropped : {project.dropped}")
    for warning in project.warnings:
        print(f"Warning : {warning}")

    print("\n--- wrangler.toml ---")
    print(project.manifest)


if __name__ == "__main__":
    main()
