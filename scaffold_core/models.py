"""Pydantic v2 value objects shared by every stage of the scaffolding pipeline.

All models are frozen: they are created fresh for every run and never
mutated afterwards.  Stages that need a changed copy use ``model_copy``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import freeze


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class MergeStrategy(str, Enum):
    """How same-path contributions from several capabilities are combined."""
    REPLACE = "replace"
    APPEND = "append"
    MERGE_STRUCTURED = "merge-structured"


class DependencyType(str, Enum):
    """Kind of manifest dependency."""
    PROD = "prod"
    DEV = "dev"
    PEER = "peer"


class FileOperation(str, Enum):
    """What the writer did (or would do, in a dry run) with a file."""
    PENDING = "pending"
    CREATE = "create"
    MODIFY = "modify"
    SKIP = "skip"


# ---------------------------------------------------------------------------
# Capability metadata
# ---------------------------------------------------------------------------

class CapabilityMetadata(BaseModel):
    """Static description of a capability, fixed for its lifetime."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique capability id, e.g. 'web-app'")
    priority: int = Field(default=100, description="Lower values execute earlier")
    version: str = Field(default="1.0.0")
    description: str = Field(default="")
    depends_on: tuple[str, ...] = Field(
        default=(), description="Capability ids that must run before this one"
    )
    contributes_to: tuple[str, ...] = Field(
        default=(), description="Shared paths this capability may contribute to"
    )


# ---------------------------------------------------------------------------
# Run context
# ---------------------------------------------------------------------------

class GenerationContext(BaseModel):
    """Read-only inputs of one scaffolding run, shared by every capability.

    ``project_config`` is deep-frozen on construction: mappings become
    read-only proxies and lists become tuples, so no capability can alter
    what later capabilities see.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    project_config: Any = Field(default_factory=dict, validate_default=True)
    output_path: Path
    enabled_capabilities: tuple[str, ...] = ()
    dry_run: bool = False
    skip_prompts: bool = False
    verbose: bool = False
    overwrite: bool = False

    @field_validator("project_config", mode="after")
    @classmethod
    def _freeze_config(cls, value: Any) -> Any:
        return freeze(value or {})

    def has_capability(self, capability_id: str) -> bool:
        """Return ``True`` if *capability_id* takes part in this run."""
        return capability_id in self.enabled_capabilities


# ---------------------------------------------------------------------------
# Production specs
# ---------------------------------------------------------------------------

class FileSpec(BaseModel):
    """A file a capability wants to produce.

    ``content`` is template text until the writer renders it; the writer
    returns a copy carrying the rendered content, the resolved path and the
    resulting ``operation``.

    A spec that sets ``merge_strategy`` is not written directly: it is
    handed to the merger as a contribution (``priority`` defaulting to the
    capability's priority), so several capabilities may declare it.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Path relative to the output directory")
    content: str = Field(default="")
    mode: Optional[int] = Field(default=None, description="POSIX mode bits, e.g. 0o755")
    merge_strategy: Optional[MergeStrategy] = None
    priority: Optional[int] = None
    condition: Optional[str] = Field(default=None, description="Condition expression")
    skip_if_exists: bool = False

    operation: FileOperation = FileOperation.PENDING
    skip_reason: Optional[str] = None
    contributors: tuple[str, ...] = ()

    @property
    def skipped(self) -> bool:
        return self.operation == FileOperation.SKIP


class FileContribution(BaseModel):
    """A mergeable piece of content aimed at a possibly shared path."""

    model_config = ConfigDict(frozen=True)

    plugin_id: str = ""
    path: str = Field(..., min_length=1)
    content: str = ""
    merge_strategy: Optional[MergeStrategy] = None
    priority: Optional[int] = None


class DependencySpec(BaseModel):
    """A dependency to be materialised into a manifest by downstream tooling."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    version: str = Field(default="*")
    type: DependencyType = DependencyType.PROD
    target: str = Field(default="root", description="'root', 'app' or another manifest name")
    plugin_id: str = ""


class ScriptSpec(BaseModel):
    """A named command to be materialised into a manifest's script table."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    command: str = Field(..., min_length=1)
    target: str = Field(default="root")
    description: Optional[str] = None
    plugin_id: str = ""


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class GenerationResult(BaseModel):
    """Outcome of running one capability."""

    model_config = ConfigDict(frozen=True)

    plugin_id: str
    success: bool = True
    files: tuple[FileSpec, ...] = ()
    contributions: tuple[FileContribution, ...] = ()
    dependencies: tuple[DependencySpec, ...] = ()
    scripts: tuple[ScriptSpec, ...] = ()
    error: Optional[str] = None
    duration: float = Field(default=0.0, description="Wall-clock seconds")
    diagnostics: tuple[str, ...] = Field(
        default=(), description="Detail lines, only populated in verbose runs"
    )


class Resolution(BaseModel):
    """Deterministic execution order computed by the resolver."""

    model_config = ConfigDict(frozen=True)

    requested: tuple[str, ...] = ()
    resolved_order: tuple[str, ...] = ()
    auto_enabled: tuple[str, ...] = ()


class ScaffoldResult(BaseModel):
    """Aggregated outcome of a whole pipeline run."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    output_path: Path
    dry_run: bool = False
    resolved_order: tuple[str, ...] = ()
    auto_enabled: tuple[str, ...] = ()
    results: tuple[GenerationResult, ...] = ()
    merged_files: tuple[FileSpec, ...] = ()
    dependencies: tuple[DependencySpec, ...] = ()
    scripts: tuple[ScriptSpec, ...] = ()
    warnings: tuple[str, ...] = ()
    duration: float = 0.0

    @property
    def files(self) -> list[FileSpec]:
        """Every file handled in the run, per-capability files first."""
        collected = [spec for result in self.results for spec in result.files]
        collected.extend(self.merged_files)
        return collected

    def count(self, operation: FileOperation) -> int:
        return sum(1 for spec in self.files if spec.operation == operation)

    @property
    def files_created(self) -> int:
        return self.count(FileOperation.CREATE)

    @property
    def files_modified(self) -> int:
        return self.count(FileOperation.MODIFY)

    @property
    def files_skipped(self) -> int:
        return self.count(FileOperation.SKIP)

    def dependencies_for(
        self, target: str = "root", dep_type: DependencyType | None = None
    ) -> list[DependencySpec]:
        """Return dependencies aimed at *target*, optionally filtered by type."""
        return [
            dep
            for dep in self.dependencies
            if dep.target == target and (dep_type is None or dep.type == dep_type)
        ]
