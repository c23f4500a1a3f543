"""Capability dependency resolution and ordering.

Given the ids a user asked for, the resolver pulls in every transitive
dependency, rejects unknown ids and cycles, and produces a deterministic
execution order: dependencies first, then ascending priority, then
declaration order in the registry.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable

from ..errors import CycleDetectedError, UnknownCapabilityError
from ..models import Resolution
from .registry import CapabilityRegistry


class CapabilityResolver:
    """Computes the execution order of capabilities from a registry."""

    def __init__(self, registry: CapabilityRegistry) -> None:
        self.registry = registry

    # -- Public API -----------------------------------------------------------

    def resolve(self, requested: Iterable[str]) -> Resolution:
        """Resolve *requested* ids into an execution order.

        Duplicate ids are ignored.  Nothing is instantiated or written.

        Raises:
            UnknownCapabilityError: A requested id or a dependency is not
                registered.
            CycleDetectedError: The expanded dependency graph has a cycle.
        """
        requested_ids = list(dict.fromkeys(requested))
        for capability_id in requested_ids:
            if not self.registry.has(capability_id):
                raise UnknownCapabilityError(capability_id)

        expanded = self._expand(requested_ids)
        order = self._topological_order(expanded)

        requested_set = set(requested_ids)
        return Resolution(
            requested=tuple(requested_ids),
            resolved_order=tuple(order),
            auto_enabled=tuple(cid for cid in order if cid not in requested_set),
        )

    def get_all_dependencies(self, capability_id: str) -> list[str]:
        """Return every capability *capability_id* needs, transitively.

        The result is in discovery order and excludes *capability_id* itself.
        """
        expanded = self._expand([capability_id])
        return [cid for cid in expanded if cid != capability_id]

    def get_dependents(self, capability_id: str) -> list[str]:
        """Return registered capabilities that directly depend on *capability_id*."""
        return [
            cid
            for cid, meta in self.registry.metadata_map().items()
            if capability_id in meta.depends_on
        ]

    def can_remove(self, selected: Iterable[str], capability_id: str) -> tuple[bool, list[str]]:
        """Check whether *capability_id* can be dropped from *selected*.

        Returns:
            ``(True, [])`` when nothing else in *selected* needs it, otherwise
            ``(False, blocking_ids)``.
        """
        blocking = [
            cid
            for cid in dict.fromkeys(selected)
            if cid != capability_id
            and self.registry.has(cid)
            and capability_id in self.get_all_dependencies(cid)
        ]
        return (not blocking, blocking)

    # -- Internals --------------------------------------------------------------

    def _expand(self, roots: list[str]) -> list[str]:
        """Breadth-first closure of *roots* over ``depends_on`` edges."""
        seen: dict[str, None] = {}
        queue = list(roots)
        while queue:
            capability_id = queue.pop(0)
            if capability_id in seen:
                continue
            seen[capability_id] = None
            for dependency in self.registry.get_metadata(capability_id).depends_on:
                if not self.registry.has(dependency):
                    raise UnknownCapabilityError(dependency, required_by=capability_id)
                if dependency not in seen:
                    queue.append(dependency)
        return list(seen)

    def _sort_key(self, capability_id: str) -> tuple[int, int]:
        meta = self.registry.get_metadata(capability_id)
        return (meta.priority, self.registry.declaration_index(capability_id))

    def _topological_order(self, nodes: list[str]) -> list[str]:
        """Kahn's algorithm with a (priority, declaration index) ready queue."""
        node_set = set(nodes)
        dependents: dict[str, list[str]] = {cid: [] for cid in nodes}
        indegree: dict[str, int] = {}
        for cid in nodes:
            deps = [d for d in dict.fromkeys(self.registry.get_metadata(cid).depends_on) if d in node_set]
            indegree[cid] = len(deps)
            for dep in deps:
                dependents[dep].append(cid)

        ready = [(self._sort_key(cid), cid) for cid in nodes if indegree[cid] == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            _, cid = heapq.heappop(ready)
            order.append(cid)
            for dependent in dependents[cid]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heapq.heappush(ready, (self._sort_key(dependent), dependent))

        if len(order) != len(nodes):
            remaining = [cid for cid in nodes if indegree[cid] > 0]
            raise CycleDetectedError(self._find_cycle(remaining))
        return order

    def _find_cycle(self, remaining: list[str]) -> list[str]:
        """Return one cycle among *remaining*, closed (``a -> b -> a``)."""
        remaining_set = set(remaining)
        visiting: list[str] = []
        done: set[str] = set()

        def visit(cid: str) -> list[str] | None:
            if cid in visiting:
                return visiting[visiting.index(cid):] + [cid]
            if cid in done:
                return None
            visiting.append(cid)
            for dep in self.registry.get_metadata(cid).depends_on:
                if dep in remaining_set:
                    cycle = visit(dep)
                    if cycle:
                        return cycle
            visiting.pop()
            done.add(cid)
            return None

        for cid in remaining:
            cycle = visit(cid)
            if cycle:
                return cycle
        return remaining
