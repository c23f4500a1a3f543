"""Capability registry and dependency resolution."""

from scaffold_core.plugins.registry import CapabilityRegistry, RegistryEntry
from scaffold_core.plugins.resolver import CapabilityResolver

__all__ = ["CapabilityRegistry", "CapabilityResolver", "RegistryEntry"]
