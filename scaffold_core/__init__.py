"""scaffold_core -- capability-driven project scaffolding.

Capabilities declare files, shared-file contributions, dependencies and
scripts.  The pipeline resolves the requested capabilities with their
dependencies, runs them in a deterministic order, merges the contributions
and writes the result (or, in a dry run, reports exactly what it would
write).
"""

from scaffold_core.config import ProjectConfig, ScaffoldSettings, load_project_config
from scaffold_core.errors import (
    CapabilityError,
    CycleDetectedError,
    DuplicateCapabilityError,
    DuplicateFileSpecError,
    MergeConflictAmbiguityError,
    PathCollisionError,
    ScaffoldError,
    StructuredMergeError,
    TemplateRenderError,
    UnknownCapabilityError,
    WriteFailureError,
)
from scaffold_core.models import (
    CapabilityMetadata,
    DependencySpec,
    DependencyType,
    FileContribution,
    FileOperation,
    FileSpec,
    GenerationContext,
    GenerationResult,
    MergeStrategy,
    Resolution,
    ScaffoldResult,
    ScriptSpec,
)
from scaffold_core.pipeline import ScaffoldPipeline
from scaffold_core.plugins import CapabilityRegistry, CapabilityResolver
from scaffold_core.renderer import TemplateRenderer
from scaffold_core.scaffolder import Capability, ContributionMerger, OutputWriter

__version__ = "0.1.0"

__all__ = [
    "Capability",
    "CapabilityError",
    "CapabilityMetadata",
    "CapabilityRegistry",
    "CapabilityResolver",
    "ContributionMerger",
    "CycleDetectedError",
    "DependencySpec",
    "DependencyType",
    "DuplicateCapabilityError",
    "DuplicateFileSpecError",
    "FileContribution",
    "FileOperation",
    "FileSpec",
    "GenerationContext",
    "GenerationResult",
    "MergeConflictAmbiguityError",
    "MergeStrategy",
    "OutputWriter",
    "PathCollisionError",
    "ProjectConfig",
    "Resolution",
    "ScaffoldError",
    "ScaffoldPipeline",
    "ScaffoldResult",
    "ScaffoldSettings",
    "ScriptSpec",
    "StructuredMergeError",
    "TemplateRenderError",
    "TemplateRenderer",
    "UnknownCapabilityError",
    "WriteFailureError",
    "load_project_config",
]
