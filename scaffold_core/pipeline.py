"""Scaffolding pipeline orchestrator.

Runs a scaffold in four strictly sequential steps:

1. RESOLVE  -- expand requested capabilities and compute the execution order.
2. GENERATE -- run each capability in order; its own files are written as it
               goes, its contributions are collected.
3. MERGE    -- fold all contributions into one file per shared path, in memory,
               on top of whatever that path already holds on disk.
4. COMMIT   -- write the merged files.

Validation errors surface in step 1, before anything touches the disk.  Any
later error aborts the run immediately; files already written stay written.

Usage::

    from scaffold_core import ScaffoldSettings, ProjectConfig
    from scaffold_core.capabilities import default_pipeline

    pipeline = default_pipeline()
    result = await pipeline.run(
        ProjectConfig(name="my-app", capabilities=["web-app"]),
        ScaffoldSettings(output_dir=Path("./my-app"), dry_run=True),
    )
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from typing import Any

from rich.console import Console

from .config import ProjectConfig, ScaffoldSettings
from .models import (
    DependencySpec,
    FileContribution,
    GenerationContext,
    GenerationResult,
    Resolution,
    ScaffoldResult,
    ScriptSpec,
)
from .plugins.registry import CapabilityRegistry
from .plugins.resolver import CapabilityResolver
from .renderer.templates import TemplateRenderer
from .scaffolder.merger import ContributionMerger
from .scaffolder.writer import OutputWriter
from .utils import console as default_console
from .utils import create_progress, format_duration, thaw


class ScaffoldPipeline:
    """Drives capabilities from a registry through resolve, generate, merge, commit.

    Attributes:
        registry: The capabilities available to this pipeline.
        resolver: Dependency resolver over ``registry``.
        renderer: Shared template renderer (partials registered on it are
            visible to every capability).
        merger: Contribution merger.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        renderer: TemplateRenderer | None = None,
        merger: ContributionMerger | None = None,
        console: Console | None = None,
    ) -> None:
        self.registry = registry
        self.resolver = CapabilityResolver(registry)
        self.renderer = renderer or TemplateRenderer()
        self.merger = merger or ContributionMerger()
        self.console = console or default_console

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(
        self,
        project: ProjectConfig | Mapping[str, Any],
        settings: ScaffoldSettings,
        requested: Iterable[str] | None = None,
    ) -> ScaffoldResult:
        """Resolve, build the generation context and execute a run.

        The requested ids come from *requested*, else ``settings.capabilities``,
        else the project's own ``capabilities`` list.

        Raises:
            pydantic.ValidationError: A mapping *project* is not a valid
                :class:`ProjectConfig`.
        """
        # Plain mappings are validated so slug and package are derived.
        if isinstance(project, ProjectConfig):
            config = project
        else:
            config = ProjectConfig.model_validate(thaw(project))
        snapshot = config.snapshot()
        project_ids = config.capabilities

        if requested is not None:
            ids = list(requested)
        elif settings.capabilities:
            ids = list(settings.capabilities)
        else:
            ids = list(project_ids)

        resolution = self.resolver.resolve(ids)

        if settings.partials_dir is not None:
            count = self.renderer.register_partials_from_dir(settings.partials_dir)
            if settings.verbose:
                self.console.print(f"[dim]Registered {count} partials from {settings.partials_dir}[/dim]")

        context = GenerationContext(
            project_config=snapshot,
            output_path=settings.output_dir,
            enabled_capabilities=resolution.resolved_order,
            dry_run=settings.dry_run,
            skip_prompts=settings.skip_prompts,
            verbose=settings.verbose,
            overwrite=settings.overwrite,
        )
        return await self.execute(context, resolution)

    async def execute(
        self, context: GenerationContext, resolution: Resolution | None = None
    ) -> ScaffoldResult:
        """Execute a run for an already-built *context*.

        When *resolution* is omitted, ``context.enabled_capabilities`` is
        resolved first (and must therefore name registered capabilities).
        The context capabilities are replaced by the resolved order so
        auto-enabled dependencies are visible to templates and conditions.
        """
        start = time.monotonic()
        if resolution is None:
            resolution = self.resolver.resolve(context.enabled_capabilities)
        order = resolution.resolved_order
        if context.enabled_capabilities != order:
            context = context.model_copy(update={"enabled_capabilities": order})

        if context.verbose:
            self._print_resolution(resolution, context)

        writer = OutputWriter(
            context.output_path,
            self.renderer,
            dry_run=context.dry_run,
            overwrite=context.overwrite,
        )
        await writer.ensure_output_dir()

        # Generate, strictly one capability at a time.
        results: list[GenerationResult] = []
        contributions: list[FileContribution] = []
        progress = create_progress(self.console) if context.verbose else None
        if progress is not None:
            progress.start()
            task = progress.add_task("Generating", total=len(order))
        try:
            for capability_id in order:
                if progress is not None:
                    progress.update(task, description=f"Generating {capability_id}")
                capability = self.registry.create(capability_id)
                result = await capability.generate(context, writer)
                results.append(result)
                contributions.extend(result.contributions)
                if progress is not None:
                    progress.advance(task)
                    self._print_capability(result)
        finally:
            if progress is not None:
                progress.stop()

        # Merge everything in memory, onto what is on disk, before the first shared write.
        warnings = self.merger.validate(contributions)
        existing = {
            path: await writer.read_existing(path)
            for path in self.merger.group_by_path(contributions)
        }
        merged = self.merger.merge(contributions, order, existing)

        committed = []
        for spec in merged:
            committed.append(await writer.commit(spec))
            if context.verbose:
                self.console.print(
                    f"  [cyan]{spec.path}[/cyan] merged from {', '.join(spec.contributors)}"
                )

        dependencies, dep_warnings = collect_dependencies(results)
        scripts, script_warnings = collect_scripts(results)
        warnings.extend(dep_warnings)
        warnings.extend(script_warnings)

        return ScaffoldResult(
            success=True,
            output_path=context.output_path,
            dry_run=context.dry_run,
            resolved_order=order,
            auto_enabled=resolution.auto_enabled,
            results=tuple(results),
            merged_files=tuple(committed),
            dependencies=tuple(dependencies),
            scripts=tuple(scripts),
            warnings=tuple(warnings),
            duration=time.monotonic() - start,
        )

    # ------------------------------------------------------------------
    # Verbose output
    # ------------------------------------------------------------------

    def _print_resolution(self, resolution: Resolution, context: GenerationContext) -> None:
        mode = "dry run" if context.dry_run else "write"
        self.console.print(
            f"[bold blue]Scaffolding[/bold blue] into {context.output_path} ({mode})"
        )
        self.console.print(f"[dim]Order: {' -> '.join(resolution.resolved_order) or '-'}[/dim]")
        if resolution.auto_enabled:
            self.console.print(
                f"[dim]Auto-enabled: {', '.join(resolution.auto_enabled)}[/dim]"
            )

    def _print_capability(self, result: GenerationResult) -> None:
        self.console.print(
            f"[green]+[/green] {result.plugin_id} "
            f"[dim]({len(result.files)} files, {len(result.contributions)} contributions, "
            f"{format_duration(result.duration)})[/dim]"
        )
        for line in result.diagnostics:
            self.console.print(f"    [dim]{line}[/dim]")


# ---------------------------------------------------------------------------
# Manifest spec aggregation
# ---------------------------------------------------------------------------


def collect_dependencies(
    results: Iterable[GenerationResult],
) -> tuple[list[DependencySpec], list[str]]:
    """Deduplicate dependencies per ``(target, type, name)``.

    A later capability's spec replaces an earlier one; differing versions
    are reported as warnings.
    """
    chosen: dict[tuple[str, str, str], DependencySpec] = {}
    warnings: list[str] = []
    for result in results:
        for dep in result.dependencies:
            key = (dep.target, dep.type.value, dep.name)
            previous = chosen.get(key)
            if previous is not None and previous.version != dep.version:
                warnings.append(
                    f"Dependency '{dep.name}' ({dep.target}, {dep.type.value}) requested as "
                    f"{previous.version} by {previous.plugin_id} and {dep.version} by "
                    f"{dep.plugin_id}; using {dep.version}"
                )
            chosen[key] = dep
    return list(chosen.values()), warnings


def collect_scripts(results: Iterable[GenerationResult]) -> tuple[list[ScriptSpec], list[str]]:
    """Deduplicate scripts per ``(target, name)``; later capabilities win."""
    chosen: dict[tuple[str, str], ScriptSpec] = {}
    warnings: list[str] = []
    for result in results:
        for script in result.scripts:
            key = (script.target, script.name)
            previous = chosen.get(key)
            if previous is not None and previous.command != script.command:
                warnings.append(
                    f"Script '{script.name}' ({script.target}) defined by {previous.plugin_id} "
                    f"is overridden by {script.plugin_id}"
                )
            chosen[key] = script
    return list(chosen.values()), warnings
