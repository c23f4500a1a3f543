"""Test suite skeleton with pytest."""

from __future__ import annotations

from ..models import (
    CapabilityMetadata,
    DependencySpec,
    DependencyType,
    FileContribution,
    FileSpec,
    GenerationContext,
    MergeStrategy,
    ScriptSpec,
)
from ..scaffolder.base import Capability


_PYTEST_INI = """\
{{ partial("file_header", title="pytest configuration") }}

[pytest]
testpaths = tests
addopts = -ra
{% if testing.coverage %}
    --cov={{ package }}
{% endif %}

markers =
    unit: fast, isolated tests
    integration: tests touching the filesystem or network
"""

_TEST_APP = """\
{{ partial("file_header", title="Smoke tests for the web application") }}

from fastapi.testclient import TestClient

from {{ package }}.app import app


def test_health() -> None:
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
"""


class TestingCapability(Capability):
    metadata = CapabilityMetadata(
        id="testing",
        priority=30,
        description="pytest configuration and a starter test suite",
        contributes_to=("config/tooling.json", ".gitignore", "README.md"),
    )

    def get_files(self, context: GenerationContext) -> list[FileSpec]:
        return [
            FileSpec(path="pytest.ini", content=_PYTEST_INI),
            FileSpec(path="tests/__init__.py", content=""),
            FileSpec(
                path="tests/test_app.py",
                content=_TEST_APP,
                condition="plugins.includes('web-app')",
                skip_if_exists=True,
            ),
        ]

    def get_contributions(self, context: GenerationContext) -> list[FileContribution]:
        return [
            FileContribution(
                path="config/tooling.json",
                content='{"tools": ["pytest"], "testing": {"paths": ["tests"]}}',
                merge_strategy=MergeStrategy.MERGE_STRUCTURED,
            ),
            FileContribution(path=".gitignore", content=".pytest_cache/\n.coverage", merge_strategy=MergeStrategy.APPEND),
            FileContribution(
                path="README.md",
                content="## Tests\n\nRun `pytest` to execute the test suite.\n",
                merge_strategy=MergeStrategy.APPEND,
            ),
        ]

    def get_dependencies(self, context: GenerationContext) -> list[DependencySpec]:
        deps = [DependencySpec(name="pytest", version=">=8.0", type=DependencyType.DEV)]
        if (context.project_config.get("testing") or {}).get("coverage"):
            deps.append(DependencySpec(name="pytest-cov", type=DependencyType.DEV))
        if context.has_capability("web-app"):
            deps.append(DependencySpec(name="httpx", version=">=0.27", type=DependencyType.DEV))
        return deps

    def get_scripts(self, context: GenerationContext) -> list[ScriptSpec]:
        return [ScriptSpec(name="test", command="pytest", description="Run the test suite")]
