"""Linting and formatting with ruff."""

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


_RUFF_TOML = """\
{{ partial("file_header", title="ruff configuration") }}

line-length = {{ linting.line_length | default(100) }}
target-version = "py{{ (python_version | default("3.12")) | replace(".", "") }}"

[lint]
select = ["E", "F", "I", "UP", "B"{% if has['type-checking'] %}, "ANN"{% endif %}]
"""


class LintingCapability(Capability):
    metadata = CapabilityMetadata(
        id="linting",
        priority=20,
        description="ruff configuration with lint and format scripts",
        contributes_to=("config/tooling.json", ".gitignore"),
    )

    def get_files(self, context: GenerationContext) -> list[FileSpec]:
        return [FileSpec(path="ruff.toml", content=_RUFF_TOML)]

    def get_contributions(self, context: GenerationContext) -> list[FileContribution]:
        return [
            FileContribution(
                path="config/tooling.json",
                content='{"tools": ["ruff"]}',
                merge_strategy=MergeStrategy.MERGE_STRUCTURED,
            ),
            FileContribution(path=".gitignore", content=".ruff_cache/", merge_strategy=MergeStrategy.APPEND),
        ]

    def get_dependencies(self, context: GenerationContext) -> list[DependencySpec]:
        return [DependencySpec(name="ruff", version=">=0.5", type=DependencyType.DEV)]

    def get_scripts(self, context: GenerationContext) -> list[ScriptSpec]:
        return [
            ScriptSpec(name="lint", command="ruff check .", description="Lint the code base"),
            ScriptSpec(name="format", command="ruff format .", description="Format the code base"),
        ]
