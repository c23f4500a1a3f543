"""Output writer: the only component that touches the output tree.

Every file a run produces passes through :class:`OutputWriter`.  It expands
destination paths, honours ``skip_if_exists``/``overwrite``, injects the
``_template`` and ``_output`` keys into the render context, renders the
content and commits it to disk.  In a dry run every one of those steps still
happens except the physical write, so the returned ``FileSpec`` objects are
identical to the ones a real run would return.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..errors import DuplicateFileSpecError, PathCollisionError, WriteFailureError
from ..models import FileOperation, FileSpec
from ..renderer.templates import TemplateRenderer


class OutputWriter:
    """Commits rendered files under *output_dir* (or simulates it when dry)."""

    def __init__(
        self,
        output_dir: str | Path,
        renderer: TemplateRenderer,
        *,
        dry_run: bool = False,
        overwrite: bool = False,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.renderer = renderer
        self.dry_run = dry_run
        self.overwrite = overwrite
        self._owners: dict[str, str] = {}
        self._shared: dict[str, list[str]] = {}

    # -- Paths --------------------------------------------------------------

    def destination(self, relative: str) -> Path:
        """Return the absolute destination of *relative*.

        Raises:
            WriteFailureError: If the path is empty or escapes the output
                directory.
        """
        if not relative:
            raise WriteFailureError(relative, "destination path is empty")
        root = self.output_dir.resolve()
        target = (root / relative).resolve()
        if target == root or not target.is_relative_to(root):
            raise WriteFailureError(relative, f"destination is outside {root}")
        return target

    def output_info(self, relative: str) -> dict[str, str]:
        """Describe a destination for templates (the ``_output`` key)."""
        target = self.destination(relative)
        return {
            "path": relative,
            "full_path": str(target),
            "dir": str(target.parent),
            "filename": target.name,
            "stem": target.stem,
            "ext": target.suffix,
        }

    async def exists(self, relative: str) -> bool:
        return await asyncio.to_thread(self.destination(relative).exists)

    async def read_existing(self, relative: str) -> str | None:
        """Return the current text of *relative*, or ``None`` if it is absent.

        Reads happen in dry runs too, so previews fold onto the same content
        a real run would.
        """
        target = self.destination(relative)
        try:
            if not await asyncio.to_thread(target.is_file):
                return None
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise WriteFailureError(relative, f"cannot read existing file: {exc}") from exc

    async def ensure_output_dir(self) -> None:
        """Create the output root; a no-op in dry runs."""
        if self.dry_run:
            return
        try:
            await asyncio.to_thread(self.output_dir.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteFailureError(str(self.output_dir), str(exc)) from exc

    # -- Ownership ------------------------------------------------------------

    def claim(self, relative: str, plugin_id: str) -> None:
        """Record that *plugin_id* produces *relative* as a plain file.

        Raises:
            DuplicateFileSpecError: The same capability already produced it.
            PathCollisionError: Another capability produced it, or it is a
                shared path reserved for contributions.
        """
        owner = self._owners.get(relative)
        if owner == plugin_id:
            raise DuplicateFileSpecError(plugin_id, relative)
        if owner is not None:
            raise PathCollisionError(relative, [owner, plugin_id])
        if relative in self._shared:
            raise PathCollisionError(relative, [*self._shared[relative], plugin_id])
        self._owners[relative] = plugin_id

    def reserve_shared(self, relative: str, plugin_id: str) -> None:
        """Record a contribution to *relative*; plain files may no longer claim it."""
        owner = self._owners.get(relative)
        if owner is not None:
            raise PathCollisionError(relative, [owner, plugin_id])
        contributors = self._shared.setdefault(relative, [])
        if plugin_id not in contributors:
            contributors.append(plugin_id)

    # -- Writing --------------------------------------------------------------

    async def write(
        self,
        spec: FileSpec,
        values: Mapping[str, Any],
        *,
        plugin_id: str,
        template_meta: Mapping[str, Any] | None = None,
    ) -> FileSpec:
        """Render *spec* against *values* and commit it.

        Returns a copy of *spec* with the expanded path, the rendered content
        and the resulting operation.  Existing files are skipped when
        ``skip_if_exists`` is set unless the writer was built with
        ``overwrite=True``.
        """
        relative = self.renderer.render_path(spec.path, values)
        exists = await self.exists(relative)

        if spec.skip_if_exists and exists and not self.overwrite:
            return spec.model_copy(
                update={
                    "path": relative,
                    "content": "",
                    "operation": FileOperation.SKIP,
                    "skip_reason": "File already exists",
                }
            )

        self.claim(relative, plugin_id)
        meta = dict(template_meta or {})
        render_context = {
            **values,
            "_template": meta,
            "_output": self.output_info(relative),
        }
        content = self.renderer.render(
            spec.content, render_context, template_id=str(meta.get("id", spec.path))
        )
        rendered = spec.model_copy(update={"path": relative, "content": content})
        return await self.commit(rendered, exists=exists)

    async def commit(self, spec: FileSpec, *, exists: bool | None = None) -> FileSpec:
        """Write already-final content; returns *spec* with its operation set."""
        target = self.destination(spec.path)
        if exists is None:
            exists = await self.exists(spec.path)

        if not self.dry_run:
            try:
                await asyncio.to_thread(_write_file, target, spec.content, spec.mode)
            except OSError as exc:
                raise WriteFailureError(spec.path, str(exc)) from exc

        operation = FileOperation.MODIFY if exists else FileOperation.CREATE
        return spec.model_copy(update={"operation": operation})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str, mode: int | None = None) -> None:
    """Synchronous helper: create parent dirs, write content, apply mode."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mode is not None:
        path.chmod(mode)
