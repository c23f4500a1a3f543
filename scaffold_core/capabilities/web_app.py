"""FastAPI web application skeleton."""

from __future__ import annotations

from typing import Any

from ..models import (
    CapabilityMetadata,
    DependencySpec,
    FileContribution,
    FileSpec,
    GenerationContext,
    MergeStrategy,
    ScriptSpec,
)
from ..scaffolder.base import Capability


_INIT = '''\
"""{{ project.description | default(project.name, true) }}"""

__version__ = "0.1.0"
'''

_APP = '''\
{{ partial("file_header", title="Application entry point") }}

from fastapi import FastAPI

from .settings import settings

app = FastAPI(title={{ project.name | to_json }}, version="0.1.0")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.environment}
{% if has['container'] %}


def main() -> None:
    import uvicorn

    uvicorn.run("{{ package }}.app:app", host="0.0.0.0", port=settings.port)
{% endif %}
'''

_SETTINGS = '''\
{{ partial("file_header", title="Runtime settings") }}

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    environment: str = os.environ.get("APP_ENV", "development")
    port: int = int(os.environ.get("PORT", "{{ port }}"))


settings = Settings()
'''

_README = """\
## Running the app

Start a development server with `uvicorn {{ package }}.app:app --reload --port {{ port }}`.
"""


class WebAppCapability(Capability):
    metadata = CapabilityMetadata(
        id="web-app",
        priority=50,
        description="FastAPI application package with settings and a health endpoint",
        depends_on=("type-checking",),
        contributes_to=("README.md", "config/tooling.json", ".env.example"),
    )

    def get_template_values(self, context: GenerationContext) -> dict[str, Any]:
        web = context.project_config.get("web_app") or {}
        return {"port": web.get("port", 8000)}

    def get_files(self, context: GenerationContext) -> list[FileSpec]:
        return [
            FileSpec(path="{{ package }}/__init__.py", content=_INIT),
            FileSpec(path="{{ package }}/app.py", content=_APP, skip_if_exists=True),
            FileSpec(path="{{ package }}/settings.py", content=_SETTINGS),
            FileSpec(path="{{ package }}/py.typed", content="", condition="has.type-checking"),
        ]

    def get_contributions(self, context: GenerationContext) -> list[FileContribution]:
        return [
            FileContribution(path="README.md", content=_README, merge_strategy=MergeStrategy.APPEND),
            FileContribution(
                path="config/tooling.json",
                content='{"app": {"module": "{{ package }}.app:app", "port": {{ port }}}}',
                merge_strategy=MergeStrategy.MERGE_STRUCTURED,
            ),
            FileContribution(
                path=".env.example",
                content="APP_ENV=development\nPORT={{ port }}",
                merge_strategy=MergeStrategy.APPEND,
            ),
        ]

    def get_dependencies(self, context: GenerationContext) -> list[DependencySpec]:
        return [
            DependencySpec(name="fastapi", version=">=0.110"),
            DependencySpec(name="uvicorn", version=">=0.29"),
        ]

    def get_scripts(self, context: GenerationContext) -> list[ScriptSpec]:
        package = context.project_config.get("package", "app")
        port = self.get_template_values(context)["port"]
        return [
            ScriptSpec(
                name="dev",
                command=f"uvicorn {package}.app:app --reload --port {port}",
                description="Start the development server",
            )
        ]
