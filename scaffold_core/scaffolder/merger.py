"""Folding of same-path contributions from several capabilities.

Contributions are applied in a fixed order: ascending priority, then the
contributing capability's position in the resolved order, then the order
in which that capability declared them.  The last contribution in that
order is the "last writer" for ``replace`` and for scalar conflicts inside
``merge-structured`` documents.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import PurePosixPath
from typing import Any

import yaml

from ..errors import MergeConflictAmbiguityError, StructuredMergeError, UnknownCapabilityError
from ..models import FileContribution, FileSpec, MergeStrategy


_APPEND_FILENAMES = {".gitignore", ".dockerignore", ".npmignore", ".prettierignore"}
_YAML_SUFFIXES = {".yaml", ".yml"}


class ContributionMerger:
    """Merges every contribution aimed at one path into a single ``FileSpec``."""

    # -- Grouping / strategy ------------------------------------------------

    def group_by_path(
        self, contributions: Iterable[FileContribution]
    ) -> dict[str, list[FileContribution]]:
        """Group contributions by path, keeping first-seen path order."""
        grouped: dict[str, list[FileContribution]] = {}
        for contribution in contributions:
            grouped.setdefault(contribution.path, []).append(contribution)
        return grouped

    @staticmethod
    def default_merge_strategy(path: str) -> MergeStrategy:
        """Pick a strategy for *path* when a contribution does not declare one."""
        pure = PurePosixPath(path)
        suffix = pure.suffix.lower()
        name = pure.name.lower()

        if suffix == ".json" or suffix in _YAML_SUFFIXES:
            return MergeStrategy.MERGE_STRUCTURED
        if name in _APPEND_FILENAMES or name.startswith(".env") or suffix == ".md":
            return MergeStrategy.APPEND
        return MergeStrategy.REPLACE

    def strategy_for(self, contribution: FileContribution) -> MergeStrategy:
        return contribution.merge_strategy or self.default_merge_strategy(contribution.path)

    def validate(self, contributions: Iterable[FileContribution]) -> list[str]:
        """Return warnings about contributions that will silently lose content."""
        warnings: list[str] = []
        for path, group in self.group_by_path(contributions).items():
            replacing = [c.plugin_id for c in group if self.strategy_for(c) == MergeStrategy.REPLACE]
            if len(replacing) > 1:
                warnings.append(
                    f"'{path}' has {len(replacing)} 'replace' contributions "
                    f"({', '.join(replacing)}); only the last one in priority order takes effect"
                )
            for plugin_id in dict.fromkeys(replacing):
                count = replacing.count(plugin_id)
                if count > 1:
                    warnings.append(
                        f"'{plugin_id}' declares {count} 'replace' contributions to '{path}'; "
                        "they apply in declaration order"
                    )
        return warnings

    # -- Merging ----------------------------------------------------------------

    def merge(
        self,
        contributions: Iterable[FileContribution],
        order: Sequence[str],
        existing: Mapping[str, str | None] | None = None,
    ) -> list[FileSpec]:
        """Fold all *contributions* into exactly one ``FileSpec`` per path.

        Args:
            contributions: Contributions from every executed capability.
            order: The resolved capability order.
            existing: Current on-disk text per path.  ``append`` and
                ``merge-structured`` fold onto it; ``replace`` ignores it.

        Raises:
            MergeConflictAmbiguityError: Contributions to one path declare
                different strategies.
            StructuredMergeError: A ``merge-structured`` contribution (or the
                existing document) does not parse.
        """
        positions = {capability_id: index for index, capability_id in enumerate(order)}
        existing = existing or {}
        return [
            self.merge_path(path, group, positions, existing.get(path))
            for path, group in self.group_by_path(contributions).items()
        ]

    def merge_path(
        self,
        path: str,
        group: Sequence[FileContribution],
        positions: dict[str, int],
        existing: str | None = None,
    ) -> FileSpec:
        strategies = {self.strategy_for(c) for c in group}
        if len(strategies) > 1:
            per_plugin: dict[str, set[str]] = {}
            for c in group:
                per_plugin.setdefault(c.plugin_id, set()).add(self.strategy_for(c).value)
            raise MergeConflictAmbiguityError(
                path, {plugin: "/".join(sorted(names)) for plugin, names in per_plugin.items()}
            )
        strategy = strategies.pop()
        ordered = self._application_order(group, positions)

        if strategy == MergeStrategy.REPLACE:
            content = ordered[-1].content
        elif strategy == MergeStrategy.APPEND:
            content = _append(ordered, existing)
        else:
            content = self._merge_structured(path, ordered, existing)

        return FileSpec(
            path=path,
            content=content,
            merge_strategy=strategy,
            priority=max((c.priority or 0) for c in ordered),
            contributors=tuple(dict.fromkeys(c.plugin_id for c in ordered)),
        )

    def _application_order(
        self, group: Sequence[FileContribution], positions: dict[str, int]
    ) -> list[FileContribution]:
        for contribution in group:
            if contribution.plugin_id not in positions:
                raise UnknownCapabilityError(contribution.plugin_id)
        indexed = list(enumerate(group))
        indexed.sort(key=lambda item: (item[1].priority or 0, positions[item[1].plugin_id], item[0]))
        return [contribution for _, contribution in indexed]

    # -- Structured documents ---------------------------------------------------

    def _merge_structured(
        self, path: str, ordered: Sequence[FileContribution], existing: str | None = None
    ) -> str:
        is_yaml = PurePosixPath(path).suffix.lower() in _YAML_SUFFIXES
        merged: Any = None
        if existing is not None and existing.strip():
            merged = _parse(path, existing, is_yaml, source="existing file")
        for contribution in ordered:
            document = _load_document(path, contribution, is_yaml)
            merged = document if merged is None else deep_merge(merged, document)
        if merged is None:
            merged = {}

        if is_yaml:
            return yaml.safe_dump(merged, sort_keys=False, default_flow_style=False, allow_unicode=True)
        return json.dumps(merged, indent=2, ensure_ascii=False) + "\n"


def deep_merge(base: Any, incoming: Any) -> Any:
    """Merge *incoming* over *base*.

    Mappings merge key by key, lists are concatenated with duplicates
    removed (first occurrence kept), anything else is replaced by
    *incoming*.
    """
    if isinstance(base, dict) and isinstance(incoming, dict):
        result = dict(base)
        for key, value in incoming.items():
            result[key] = deep_merge(base[key], value) if key in base else value
        return result
    if isinstance(base, list) and isinstance(incoming, list):
        combined: list[Any] = []
        for item in base + incoming:
            if item not in combined:
                combined.append(item)
        return combined
    return incoming


def _load_document(path: str, contribution: FileContribution, is_yaml: bool) -> Any:
    if not contribution.content.strip():
        return {}
    return _parse(path, contribution.content, is_yaml, source=contribution.plugin_id)


def _parse(path: str, text: str, is_yaml: bool, *, source: str) -> Any:
    try:
        if is_yaml:
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise StructuredMergeError(path, source, str(exc)) from exc


def _strip_newline(text: str) -> str:
    return text[:-1] if text.endswith("\n") else text


def _append(ordered: Sequence[FileContribution], existing: str | None) -> str:
    """Join contributions line-wise after *existing*.

    Only one trailing newline is dropped from each part, so blank lines a
    contribution ends with survive.  A contribution whose lines already
    appear as a block in *existing* is not added again.
    """
    parts: list[str] = []
    existing_lines: list[str] = []
    if existing:
        parts.append(_strip_newline(existing))
        existing_lines = existing.splitlines()
    for contribution in ordered:
        body = _strip_newline(contribution.content)
        if existing_lines and _contains_block(existing_lines, body.splitlines()):
            continue
        parts.append(body)
    return "\n".join(parts) + "\n"


def _contains_block(lines: Sequence[str], block: Sequence[str]) -> bool:
    if not block:
        return True
    size = len(block)
    return any(list(lines[i : i + size]) == list(block) for i in range(len(lines) - size + 1))
