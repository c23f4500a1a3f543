"""scaffold_core configuration.

Typed settings for a scaffolding run and the declarative project
configuration it expands.  Both are Pydantic v2 models so they validate at
construction time and serialise to/from JSON, YAML or environment
variables without boiler-plate.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .utils import freeze, slugify, snake_case


_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


class ScaffoldSettings(BaseModel):
    """Run-level switches supplied by the calling CLI.

    Instances are created once per run and turned into a
    ``GenerationContext`` by the pipeline.
    """

    output_dir: Path = Field(default=Path("./output"))
    dry_run: bool = Field(default=False, description="Compute everything, write nothing")
    skip_prompts: bool = Field(default=False)
    verbose: bool = Field(default=False, description="Carry diagnostics in results and print progress")
    overwrite: bool = Field(default=False, description="Replace files marked skip_if_exists")
    partials_dir: Optional[Path] = Field(
        default=None, description="Directory of extra partials to register before rendering"
    )
    capabilities: list[str] = Field(
        default_factory=list, description="Requested capability ids (overrides the project's)"
    )

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the settings to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ScaffoldSettings":
        """Load previously saved settings from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "ScaffoldSettings":
        """Build settings from environment variables.

        Recognised variables (all optional):
            SCAFFOLD_OUTPUT_DIR, SCAFFOLD_DRY_RUN, SCAFFOLD_SKIP_PROMPTS,
            SCAFFOLD_VERBOSE, SCAFFOLD_OVERWRITE, SCAFFOLD_PARTIALS_DIR,
            SCAFFOLD_CAPABILITIES (comma separated).
        """
        partials = os.environ.get("SCAFFOLD_PARTIALS_DIR")
        capabilities_str = os.environ.get("SCAFFOLD_CAPABILITIES", "")
        return cls(
            output_dir=Path(os.environ.get("SCAFFOLD_OUTPUT_DIR", "./output")),
            dry_run=_env_flag("SCAFFOLD_DRY_RUN"),
            skip_prompts=_env_flag("SCAFFOLD_SKIP_PROMPTS"),
            verbose=_env_flag("SCAFFOLD_VERBOSE"),
            overwrite=_env_flag("SCAFFOLD_OVERWRITE"),
            partials_dir=Path(partials) if partials else None,
            capabilities=[c.strip() for c in capabilities_str.split(",") if c.strip()],
        )


class ProjectConfig(BaseModel):
    """Declarative description of the project to scaffold.

    Unknown keys are kept, so capability-specific settings can live next to
    the common ones and reach templates unchanged.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, description="Project name")
    description: str = Field(default="")
    author: str = Field(default="")
    license: str = Field(default="MIT")
    capabilities: list[str] = Field(default_factory=list, description="Requested capability ids")

    @property
    def slug(self) -> str:
        """Filename-safe form of the project name."""
        return slugify(self.name) or "project"

    @property
    def package(self) -> str:
        """Importable module name derived from the slug."""
        return snake_case(self.slug)

    def snapshot(self) -> Any:
        """Return the immutable resolved snapshot handed to capabilities."""
        data = self.model_dump()
        data["slug"] = self.slug
        data["package"] = self.package
        return freeze(data)


def load_project_config(path: str | Path) -> ProjectConfig:
    """Read a project configuration from a YAML or JSON file."""
    file_path = Path(path)
    raw = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() in (".yml", ".yaml"):
        data = yaml.safe_load(raw) or {}
    else:
        data = json.loads(raw)
    return ProjectConfig.model_validate(data)
