"""Docker packaging for the web application."""

from __future__ import annotations

from typing import Any

from ..models import (
    CapabilityMetadata,
    FileContribution,
    FileSpec,
    GenerationContext,
    MergeStrategy,
    ScriptSpec,
)
from ..scaffolder.base import Capability


_DOCKERFILE = """\
{{ partial("file_header", title="Container image") }}

FROM python:{{ python_version | default("3.12") }}-slim

WORKDIR /app
COPY . .
RUN pip install --no-cache-dir .

EXPOSE {{ port }}
ENTRYPOINT ["./scripts/entrypoint.sh"]
"""

_DOCKERIGNORE = """\
.git
.venv
__pycache__/
*.pyc
{% for cache in ignored_caches %}
{{ cache }}
{% endfor %}
"""

_ENTRYPOINT = """\
#!/bin/sh
{{ partial("file_header", title="Container entrypoint") }}

set -e
exec uvicorn {{ package }}.app:app --host 0.0.0.0 --port "${PORT:-{{ port }}}"
"""

_COMPOSE = """\
{{ partial("file_header", title="Local container stack") }}

services:
  {{ slug }}:
    build: .
    ports:
      - "{{ port }}:{{ port }}"
    env_file:
      - .env
"""

_README = """\
## Container

Build the image with `docker build -t {{ slug }} .` and run it with
`docker run -p {{ port }}:{{ port }} {{ slug }}`.
"""

# Cache directories other capabilities create, keyed by capability id.
_CACHES = {
    "type-checking": ".mypy_cache/",
    "linting": ".ruff_cache/",
    "testing": ".pytest_cache/",
}


class ContainerCapability(Capability):
    metadata = CapabilityMetadata(
        id="container",
        priority=80,
        description="Dockerfile, entrypoint script and optional compose file",
        depends_on=("web-app",),
        contributes_to=("README.md",),
    )

    def get_template_values(self, context: GenerationContext) -> dict[str, Any]:
        web = context.project_config.get("web_app") or {}
        return {
            "port": web.get("port", 8000),
            "ignored_caches": [
                cache for capability_id, cache in _CACHES.items() if context.has_capability(capability_id)
            ],
        }

    def get_files(self, context: GenerationContext) -> list[FileSpec]:
        return [
            FileSpec(path="Dockerfile", content=_DOCKERFILE),
            FileSpec(path=".dockerignore", content=_DOCKERIGNORE),
            FileSpec(path="scripts/entrypoint.sh", content=_ENTRYPOINT, mode=0o755),
            FileSpec(path="docker-compose.yml", content=_COMPOSE, condition="container.compose"),
        ]

    def get_contributions(self, context: GenerationContext) -> list[FileContribution]:
        return [FileContribution(path="README.md", content=_README, merge_strategy=MergeStrategy.APPEND)]

    def get_scripts(self, context: GenerationContext) -> list[ScriptSpec]:
        slug = context.project_config.get("slug", "app")
        return [
            ScriptSpec(name="docker-build", command=f"docker build -t {slug} .", description="Build the image")
        ]
