"""Explicit registry of capability factories.

The registry is a plain value built at startup and handed to the resolver
and the pipeline.  How capabilities are discovered or packaged is up to the
caller; the registry only maps ids to factories and their static metadata.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import DuplicateCapabilityError, UnknownCapabilityError
from ..models import CapabilityMetadata

if TYPE_CHECKING:
    from ..scaffolder.base import Capability

CapabilityFactory = Callable[[], "Capability"]


@dataclass(frozen=True)
class RegistryEntry:
    """A registered capability: its metadata, factory and declaration index."""

    metadata: CapabilityMetadata
    factory: CapabilityFactory
    index: int


class CapabilityRegistry:
    """Maps capability ids to factories, preserving declaration order."""

    def __init__(self, factories: Iterable[CapabilityFactory] = ()) -> None:
        self._entries: dict[str, RegistryEntry] = {}
        for factory in factories:
            self.register(factory)

    def register(
        self,
        factory: CapabilityFactory,
        metadata: CapabilityMetadata | None = None,
    ) -> CapabilityMetadata:
        """Register *factory* under its metadata id.

        *metadata* defaults to the factory's ``metadata`` attribute, which is
        what :class:`~scaffold_core.scaffolder.base.Capability` subclasses
        declare.

        Raises:
            DuplicateCapabilityError: If the id is already registered.
        """
        meta = metadata if metadata is not None else getattr(factory, "metadata", None)
        if not isinstance(meta, CapabilityMetadata):
            raise TypeError(f"{factory!r} does not declare CapabilityMetadata")
        if meta.id in self._entries:
            raise DuplicateCapabilityError(meta.id)
        self._entries[meta.id] = RegistryEntry(meta, factory, len(self._entries))
        return meta

    # -- Lookup ---------------------------------------------------------------

    def has(self, capability_id: str) -> bool:
        return capability_id in self._entries

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def ids(self) -> list[str]:
        """Return every registered id in declaration order."""
        return list(self._entries)

    def _entry(self, capability_id: str) -> RegistryEntry:
        try:
            return self._entries[capability_id]
        except KeyError:
            raise UnknownCapabilityError(capability_id) from None

    def get_metadata(self, capability_id: str) -> CapabilityMetadata:
        return self._entry(capability_id).metadata

    def declaration_index(self, capability_id: str) -> int:
        return self._entry(capability_id).index

    def metadata_map(self) -> dict[str, CapabilityMetadata]:
        """Return ``{id: metadata}`` in declaration order."""
        return {cid: entry.metadata for cid, entry in self._entries.items()}

    def create(self, capability_id: str) -> "Capability":
        """Instantiate a fresh capability for one run."""
        return self._entry(capability_id).factory()
