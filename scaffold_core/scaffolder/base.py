"""Base class for capabilities.

A capability declares static :class:`CapabilityMetadata` and pure
production methods returning plain specs.  :meth:`Capability.generate`
turns those specs into files by way of the :class:`OutputWriter`, which is
the only place side effects happen.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any, ClassVar

from ..errors import CapabilityError, DuplicateFileSpecError
from ..models import (
    CapabilityMetadata,
    DependencySpec,
    FileContribution,
    FileOperation,
    FileSpec,
    GenerationContext,
    GenerationResult,
    ScriptSpec,
)
from ..utils import freeze
from .writer import OutputWriter


class Capability:
    """A pluggable unit of project generation.

    Subclasses set ``metadata`` and override any of the ``get_*`` methods.
    Those methods must be pure: they read the context and return specs,
    nothing else.
    """

    metadata: ClassVar[CapabilityMetadata]

    @property
    def id(self) -> str:
        return self.metadata.id

    # -- Production functions (override in subclasses) ------------------------

    def get_files(self, context: GenerationContext) -> list[FileSpec]:
        return []

    def get_dependencies(self, context: GenerationContext) -> list[DependencySpec]:
        return []

    def get_scripts(self, context: GenerationContext) -> list[ScriptSpec]:
        return []

    def get_contributions(self, context: GenerationContext) -> list[FileContribution]:
        """Content for shared paths other capabilities may also touch."""
        return []

    def get_template_values(self, context: GenerationContext) -> dict[str, Any]:
        """Capability-local values layered over the project config when rendering."""
        return {}

    # -- Rendering context ------------------------------------------------------

    def template_context(self, context: GenerationContext) -> dict[str, Any]:
        """Build the mapping templates and conditions are evaluated against.

        Layers, later wins: run-level values (``plugins``, ``has``), the
        project config keys, ``project`` (the whole config) and finally the
        capability's own values.
        """
        enabled = context.enabled_capabilities
        values: dict[str, Any] = {
            "plugins": enabled,
            "enabled_capabilities": enabled,
            "has": freeze({capability_id: True for capability_id in enabled}),
            "capability": freeze(self.metadata.model_dump()),
            "dry_run": context.dry_run,
        }
        values.update(context.project_config)
        values["project"] = context.project_config
        values.update(self.get_template_values(context))
        return values

    def template_meta(self, spec: FileSpec) -> dict[str, Any]:
        """Identifying data of a file definition (the ``_template`` key)."""
        return {
            "id": f"{self.id}:{spec.path}",
            "plugin_id": self.id,
            "path": spec.path,
            "version": self.metadata.version,
        }

    # -- Generation ---------------------------------------------------------------

    async def generate(self, context: GenerationContext, writer: OutputWriter) -> GenerationResult:
        """Produce this capability's files, contributions and manifest specs.

        Files whose ``condition`` is false are returned as skipped without
        their content being rendered.  Files that set ``merge_strategy`` become
        contributions for the merger instead of being written directly.  Any failure is re-raised as :class:`CapabilityError`
        naming this capability and, where known, the file.
        """
        start = time.monotonic()
        diagnostics: list[str] = []
        current: str | None = None

        try:
            specs = self.get_files(context)
            _check_unique_paths(self.id, specs)
            values = self.template_context(context)

            files: list[FileSpec] = []
            shared: list[FileContribution] = []
            for spec in specs:
                current = spec.path
                if spec.condition and not writer.renderer.evaluate_condition(spec.condition, values):
                    reason = f"Condition not met: {spec.condition}"
                    path = writer.renderer.render_path(spec.path, values)
                    diagnostics.append(f"{path}: {reason}")
                    files.append(
                        spec.model_copy(
                            update={
                                "path": path,
                                "content": "",
                                "operation": FileOperation.SKIP,
                                "skip_reason": reason,
                            }
                        )
                    )
                    continue

                if spec.merge_strategy is not None:
                    # Files with a strategy are shared: the merger writes them.
                    contribution = self._prepare_contribution(
                        FileContribution(
                            path=spec.path,
                            content=spec.content,
                            merge_strategy=spec.merge_strategy,
                            priority=spec.priority,
                        ),
                        values,
                        writer,
                    )
                    diagnostics.append(f"{contribution.path}: {spec.merge_strategy.value} via merger")
                    shared.append(contribution)
                    continue

                processed = await writer.write(
                    spec, values, plugin_id=self.id, template_meta=self.template_meta(spec)
                )
                if processed.skipped:
                    diagnostics.append(f"{processed.path}: {processed.skip_reason}")
                else:
                    diagnostics.append(f"{processed.path}: {processed.operation.value}")
                files.append(processed)

            current = None
            contributions = [
                self._prepare_contribution(contribution, values, writer)
                for contribution in self.get_contributions(context)
            ]
            for contribution in contributions:
                if contribution.path not in self.metadata.contributes_to:
                    diagnostics.append(f"{contribution.path}: contribution not declared in contributes_to")
            contributions = shared + contributions
            dependencies = [
                dep if dep.plugin_id else dep.model_copy(update={"plugin_id": self.id})
                for dep in self.get_dependencies(context)
            ]
            scripts = [
                script if script.plugin_id else script.model_copy(update={"plugin_id": self.id})
                for script in self.get_scripts(context)
            ]
        except CapabilityError:
            raise
        except Exception as exc:
            raise CapabilityError(self.id, str(exc), path=current) from exc

        return GenerationResult(
            plugin_id=self.id,
            success=True,
            files=tuple(files),
            contributions=tuple(contributions),
            dependencies=tuple(dependencies),
            scripts=tuple(scripts),
            duration=time.monotonic() - start,
            diagnostics=tuple(diagnostics) if context.verbose else (),
        )

    def _prepare_contribution(
        self,
        contribution: FileContribution,
        values: Mapping[str, Any],
        writer: OutputWriter,
    ) -> FileContribution:
        path = writer.renderer.render_path(contribution.path, values)
        writer.reserve_shared(path, self.id)
        content = writer.renderer.render(
            contribution.content, values, template_id=f"{self.id}:{contribution.path}"
        )
        return contribution.model_copy(
            update={
                "plugin_id": self.id,
                "path": path,
                "content": content,
                "priority": (
                    contribution.priority
                    if contribution.priority is not None
                    else self.metadata.priority
                ),
            }
        )


def _check_unique_paths(plugin_id: str, specs: list[FileSpec]) -> None:
    seen: set[str] = set()
    for spec in specs:
        if spec.path in seen:
            raise DuplicateFileSpecError(plugin_id, spec.path)
        seen.add(spec.path)
