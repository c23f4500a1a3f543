"""Static type checking with mypy."""

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


_MYPY_INI = """\
{{ partial("file_header", title="mypy configuration") }}

[mypy]
python_version = {{ python_version | default("3.12") }}
strict = {{ "True" if type_checking.strict | default(true) else "False" }}
warn_unused_configs = True
files = {{ package }}
{% if has['testing'] %}

[mypy-tests.*]
disallow_untyped_defs = False
{% endif %}
"""

_TOOLING = """\
{
  "tools": ["mypy"],
  "type_checking": {"checker": "mypy", "paths": [{{ package | to_json }}]}
}
"""


class TypeCheckingCapability(Capability):
    metadata = CapabilityMetadata(
        id="type-checking",
        priority=10,
        description="mypy configuration and a typecheck script",
        contributes_to=("config/tooling.json", ".gitignore", "README.md"),
    )

    def get_files(self, context: GenerationContext) -> list[FileSpec]:
        return [FileSpec(path="mypy.ini", content=_MYPY_INI)]

    def get_contributions(self, context: GenerationContext) -> list[FileContribution]:
        return [
            FileContribution(
                path="config/tooling.json",
                content=_TOOLING,
                merge_strategy=MergeStrategy.MERGE_STRUCTURED,
            ),
            FileContribution(path=".gitignore", content=".mypy_cache/", merge_strategy=MergeStrategy.APPEND),
            FileContribution(
                path="README.md",
                content="## Type checking\n\nRun `mypy {{ package }}` to type check the package.\n",
                merge_strategy=MergeStrategy.APPEND,
            ),
        ]

    def get_dependencies(self, context: GenerationContext) -> list[DependencySpec]:
        return [DependencySpec(name="mypy", version=">=1.10", type=DependencyType.DEV)]

    def get_scripts(self, context: GenerationContext) -> list[ScriptSpec]:
        package = context.project_config.get("package", "app")
        return [
            ScriptSpec(name="typecheck", command=f"mypy {package}", description="Run the type checker")
        ]
