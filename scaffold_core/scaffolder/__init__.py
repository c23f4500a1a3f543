"""Capability base class, contribution merging and output writing.

Quick usage::

    from scaffold_core.scaffolder import Capability
    from scaffold_core.models import CapabilityMetadata, FileSpec

    class ReadmeCapability(Capability):
        metadata = CapabilityMetadata(id="readme", priority=10)

        def get_files(self, context):
            return [FileSpec(path="README.md", content="# {{ name }}\\n")]
"""

from scaffold_core.scaffolder.base import Capability
from scaffold_core.scaffolder.merger import ContributionMerger, deep_merge
from scaffold_core.scaffolder.writer import OutputWriter

__all__ = [
    "Capability",
    "ContributionMerger",
    "OutputWriter",
    "deep_merge",
]
