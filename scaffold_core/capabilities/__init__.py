"""Built-in capabilities.

Five capabilities ship with the package.  ``web-app`` depends on
``type-checking`` and ``container`` depends on ``web-app``; all of them
contribute to shared files (``README.md``, ``.gitignore``,
``config/tooling.json``) that the merger folds together.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ..pipeline import ScaffoldPipeline
from ..plugins.registry import CapabilityRegistry
from ..renderer.templates import TemplateRenderer
from ..scaffolder.base import Capability
from .container import ContainerCapability
from .linting import LintingCapability
from .testing import TestingCapability
from .type_checking import TypeCheckingCapability
from .web_app import WebAppCapability

PARTIALS_DIR = Path(__file__).parent / "partials"

BUILTIN_CAPABILITIES: tuple[type[Capability], ...] = (
    TypeCheckingCapability,
    LintingCapability,
    TestingCapability,
    WebAppCapability,
    ContainerCapability,
)


def default_registry() -> CapabilityRegistry:
    """Return a fresh registry holding every built-in capability."""
    return CapabilityRegistry(BUILTIN_CAPABILITIES)


def default_renderer(template_dir: str | Path | None = None) -> TemplateRenderer:
    """Return a renderer with the bundled partials registered."""
    renderer = TemplateRenderer(template_dir)
    renderer.register_partials_from_dir(PARTIALS_DIR)
    return renderer


def default_pipeline(**kwargs: Any) -> ScaffoldPipeline:
    """Build a pipeline over the built-in capabilities.

    Keyword arguments are passed to :class:`ScaffoldPipeline`; a ``renderer``
    supplied there must already know the bundled partials.
    """
    kwargs.setdefault("renderer", default_renderer())
    return ScaffoldPipeline(default_registry(), **kwargs)


__all__ = [
    "BUILTIN_CAPABILITIES",
    "PARTIALS_DIR",
    "ContainerCapability",
    "LintingCapability",
    "TestingCapability",
    "TypeCheckingCapability",
    "WebAppCapability",
    "default_pipeline",
    "default_registry",
    "default_renderer",
]
