"""Exception taxonomy for the scaffolding pipeline.

Validation errors (unknown capability, dependency cycle) are raised by the
resolver before any capability runs.  Everything raised while a capability
runs is wrapped in :class:`CapabilityError` so callers always know which
capability (and, where known, which file) failed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class ScaffoldError(Exception):
    """Base class for every error raised by scaffold_core."""


class UnknownCapabilityError(ScaffoldError):
    """Raised when a capability id is absent from the registry."""

    def __init__(self, capability_id: str, required_by: str | None = None) -> None:
        self.capability_id = capability_id
        self.required_by = required_by
        if required_by:
            message = f"Unknown capability '{capability_id}' (required by '{required_by}')"
        else:
            message = f"Unknown capability '{capability_id}'"
        super().__init__(message)


class DuplicateCapabilityError(ScaffoldError):
    """Raised when two factories are registered under the same id."""

    def __init__(self, capability_id: str) -> None:
        self.capability_id = capability_id
        super().__init__(f"Capability '{capability_id}' is already registered")


class CycleDetectedError(ScaffoldError):
    """Raised when the dependency graph of the requested capabilities has a cycle."""

    def __init__(self, cycle: Iterable[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


class TemplateRenderError(ScaffoldError):
    """Raised when a template cannot be compiled or rendered."""

    def __init__(self, template_id: str, message: str, plugin_id: str | None = None) -> None:
        self.template_id = template_id
        self.plugin_id = plugin_id
        self.reason = message
        prefix = f"[{plugin_id}] " if plugin_id else ""
        super().__init__(f"{prefix}Template '{template_id}' failed to render: {message}")


class WriteFailureError(ScaffoldError):
    """Raised when the output writer cannot commit a file."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to write {path}: {message}")


class MergeConflictAmbiguityError(ScaffoldError):
    """Raised when contributions to one path declare different merge strategies."""

    def __init__(self, path: str, strategies: Mapping[str, str]) -> None:
        self.path = path
        self.strategies = dict(strategies)
        detail = ", ".join(f"{plugin}={strategy}" for plugin, strategy in self.strategies.items())
        super().__init__(f"Conflicting merge strategies for '{path}': {detail}")


class StructuredMergeError(ScaffoldError):
    """Raised when a merge-structured contribution is not a parseable document."""

    def __init__(self, path: str, plugin_id: str, message: str) -> None:
        self.path = path
        self.plugin_id = plugin_id
        super().__init__(f"Cannot merge contribution from '{plugin_id}' into '{path}': {message}")


class DuplicateFileSpecError(ScaffoldError):
    """Raised when a single capability declares two files at the same path."""

    def __init__(self, plugin_id: str, path: str) -> None:
        self.plugin_id = plugin_id
        self.path = path
        super().__init__(f"Capability '{plugin_id}' declares '{path}' more than once")


class PathCollisionError(ScaffoldError):
    """Raised when two capabilities claim one path without a contribution."""

    def __init__(self, path: str, owners: Iterable[str]) -> None:
        self.path = path
        self.owners = list(owners)
        super().__init__(
            f"Path '{path}' is produced by {', '.join(self.owners)}; "
            "shared paths must use contributions with a merge strategy"
        )


class CapabilityError(ScaffoldError):
    """Wraps any failure raised while a capability is running."""

    def __init__(self, plugin_id: str, message: str, path: str | None = None) -> None:
        self.plugin_id = plugin_id
        self.path = path
        location = f" ({path})" if path else ""
        super().__init__(f"Capability '{plugin_id}' failed{location}: {message}")
