"""Jinja2 template rendering for scaffolded files and paths.

Provides the TemplateRenderer class which expands file contents and
destination paths against a context mapping, evaluates file conditions, and
manages named partials.  Output is source/config text, so nothing is
HTML-escaped, and missing context values render as empty strings instead of
raising.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from jinja2 import (
    ChainableUndefined,
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    TemplateError,
    pass_context,
)
from jinja2.runtime import Context

from ..errors import TemplateRenderError
from ..utils import camel_case, kebab_case, pascal_case, slugify, snake_case, thaw
from .conditions import evaluate_condition


PARTIAL_SUFFIXES: tuple[str, ...] = (".j2", ".jinja", ".jinja2")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for scaffolded files.

    Templates are usually inline strings carried by a ``FileSpec``.  An
    optional *template_dir* makes file-based templates available to
    ``{% include %}``/``{% extends %}``; partials registered at runtime take
    precedence over files of the same name.

    Partials can be pulled in two ways::

        {% include "file_header" %}
        {{ partial("file_header", comment="#", title="Settings") }}

    The second form passes keyword arguments that shadow the surrounding
    context for the duration of the partial.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self._partials: dict[str, str] = {}
        self._compiled: dict[str, Any] = {}

        loaders: list[Any] = [DictLoader(self._partials)]
        self.template_dir = Path(template_dir) if template_dir is not None else None
        if self.template_dir is not None:
            loaders.append(FileSystemLoader(str(self.template_dir)))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            undefined=ChainableUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["slugify"] = slugify
        self.env.filters["kebab_case"] = kebab_case
        self.env.filters["snake_case"] = snake_case
        self.env.filters["camel_case"] = camel_case
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["to_json"] = _to_json_filter
        self.env.globals["partial"] = self._make_partial_global()

    # -- Rendering ----------------------------------------------------------

    def render(
        self,
        template: str,
        context: Mapping[str, Any],
        template_id: str = "<inline>",
    ) -> str:
        """Render an inline template string with the provided context.

        Raises:
            TemplateRenderError: If the template is malformed or a partial
                it references does not exist.
        """
        try:
            compiled = self.env.from_string(template)
            return compiled.render(dict(context))
        except TemplateError as exc:
            raise TemplateRenderError(template_id, str(exc)) from exc

    def render_path(self, path_template: str, context: Mapping[str, Any]) -> str:
        """Expand a destination path such as ``src/{{ project.slug }}/app.py``."""
        rendered = self.render(path_template, context, template_id=path_template)
        return rendered.strip()

    def compile(
        self, template: str, template_id: str = "<inline>"
    ) -> Callable[[Mapping[str, Any]], str]:
        """Compile *template* once and return a function rendering it per context."""
        try:
            compiled = self.env.from_string(template)
        except TemplateError as exc:
            raise TemplateRenderError(template_id, str(exc)) from exc

        def render(context: Mapping[str, Any]) -> str:
            try:
                return compiled.render(dict(context))
            except TemplateError as exc:
                raise TemplateRenderError(template_id, str(exc)) from exc

        return render

    def render_named(self, name: str, template: str, context: Mapping[str, Any]) -> str:
        """Render *template*, compiling it only the first time *name* is seen."""
        compiled = self._compiled.get(name)
        if compiled is None:
            compiled = self.compile(template, template_id=name)
            self._compiled[name] = compiled
        return compiled(context)

    def clear_cache(self) -> None:
        """Drop every template compiled through :meth:`render_named`."""
        self._compiled.clear()

    # -- Conditions ---------------------------------------------------------

    def evaluate_condition(self, expr: str | None, context: Mapping[str, Any]) -> bool:
        """Evaluate a file condition; unresolvable references are false."""
        return evaluate_condition(expr, context)

    # -- Partials -----------------------------------------------------------

    def register_partial(self, name: str, content: str) -> None:
        """Register (or replace) a named partial."""
        self._partials[name] = content

    def register_partials_from_dir(self, directory: str | Path) -> int:
        """Register every partial file found under *directory*.

        Partial names are the file paths relative to *directory* without
        their suffix (``ci/job.j2`` -> ``ci/job``).

        Returns:
            The number of partials registered; ``0`` if *directory* does not
            exist.
        """
        root = Path(directory)
        if not root.is_dir():
            return 0

        count = 0
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.suffix not in PARTIAL_SUFFIXES:
                continue
            name = path.relative_to(root).with_suffix("").as_posix()
            self.register_partial(name, path.read_text(encoding="utf-8"))
            count += 1
        return count

    def has_partial(self, name: str) -> bool:
        return name in self._partials

    def list_partials(self) -> list[str]:
        """Return the sorted names of all registered partials."""
        return sorted(self._partials)

    def _make_partial_global(self) -> Callable[..., str]:
        env = self.env

        @pass_context
        def partial(ctx: Context, partial_name: str, /, **kwargs: Any) -> str:
            template = env.get_template(partial_name)
            return template.render({**ctx.get_all(), **kwargs})

        return partial


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _to_json_filter(value: Any, indent: int | None = 2) -> str:
    """Serialise a (possibly frozen) context value as JSON."""
    return json.dumps(thaw(value), indent=indent, ensure_ascii=False, default=str)
