"""Shared pytest fixtures for the scaffold_core test suite.

Provides reusable fixtures for:
- Temporary output directories
- A renderer with the bundled partials registered
- A factory for small in-test capabilities
- Generation contexts and project configs
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

from scaffold_core.capabilities import default_renderer
from scaffold_core.config import ProjectConfig
from scaffold_core.models import (
    CapabilityMetadata,
    DependencySpec,
    FileContribution,
    FileSpec,
    GenerationContext,
    ScriptSpec,
)
from scaffold_core.plugins.registry import CapabilityRegistry
from scaffold_core.renderer.templates import TemplateRenderer
from scaffold_core.scaffolder.base import Capability
from scaffold_core.scaffolder.writer import OutputWriter


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Destination directory for a scaffold run (not created up front)."""
    return tmp_path / "generated"


# ---------------------------------------------------------------------------
# Rendering & Writing
# ---------------------------------------------------------------------------

@pytest.fixture
def renderer() -> TemplateRenderer:
    """Renderer with the bundled ``file_header`` partial."""
    return default_renderer()


@pytest.fixture
def writer(output_dir: Path, renderer: TemplateRenderer) -> OutputWriter:
    return OutputWriter(output_dir, renderer)


@pytest.fixture
def dry_writer(output_dir: Path, renderer: TemplateRenderer) -> OutputWriter:
    return OutputWriter(output_dir, renderer, dry_run=True)


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

CapabilityFactory = Callable[..., type[Capability]]


@pytest.fixture
def make_capability() -> CapabilityFactory:
    """Build a ``Capability`` subclass from plain data.

    Usage::

        Readme = make_capability("readme", files=[FileSpec(path="README.md", content="hi")])
    """

    def _make(
        capability_id: str,
        *,
        priority: int = 100,
        depends_on: Iterable[str] = (),
        contributes_to: Iterable[str] = (),
        files: Iterable[FileSpec] = (),
        contributions: Iterable[FileContribution] = (),
        dependencies: Iterable[DependencySpec] = (),
        scripts: Iterable[ScriptSpec] = (),
        values: dict[str, Any] | None = None,
    ) -> type[Capability]:
        file_list = list(files)
        contribution_list = list(contributions)
        dependency_list = list(dependencies)
        script_list = list(scripts)
        local_values = dict(values or {})

        class _Built(Capability):
            metadata = CapabilityMetadata(
                id=capability_id,
                priority=priority,
                depends_on=tuple(depends_on),
                contributes_to=tuple(contributes_to),
            )

            def get_files(self, context):
                return list(file_list)

            def get_contributions(self, context):
                return list(contribution_list)

            def get_dependencies(self, context):
                return list(dependency_list)

            def get_scripts(self, context):
                return list(script_list)

            def get_template_values(self, context):
                return dict(local_values)

        _Built.__name__ = f"Capability_{capability_id.replace('-', '_')}"
        return _Built

    return _make


@pytest.fixture
def graph_registry(make_capability: CapabilityFactory) -> CapabilityRegistry:
    """Registry mirroring the built-in dependency graph with empty capabilities."""
    return CapabilityRegistry(
        [
            make_capability("type-checking", priority=10),
            make_capability("linting", priority=20),
            make_capability("testing", priority=30),
            make_capability("web-app", priority=50, depends_on=["type-checking"]),
            make_capability("container", priority=80, depends_on=["web-app"]),
        ]
    )


# ---------------------------------------------------------------------------
# Configuration & Context
# ---------------------------------------------------------------------------

@pytest.fixture
def project_config() -> ProjectConfig:
    return ProjectConfig(name="Demo Service", description="A demo service.", author="Dev Team")


@pytest.fixture
def make_context(output_dir: Path, project_config: ProjectConfig) -> Callable[..., GenerationContext]:
    """Build a ``GenerationContext`` for the demo project.

    Keyword arguments override context fields.
    """

    def _make(*enabled: str, **overrides: Any) -> GenerationContext:
        fields: dict[str, Any] = {
            "project_config": project_config.snapshot(),
            "output_path": output_dir,
            "enabled_capabilities": enabled,
        }
        fields.update(overrides)
        return GenerationContext(**fields)

    return _make
