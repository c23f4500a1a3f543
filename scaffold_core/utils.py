"""Shared helpers for scaffold_core.

Provides deep freezing of configuration snapshots, dotted-path lookup,
name-case conversions, and Rich-based console reporting.  Nothing in here
touches the filesystem.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

if TYPE_CHECKING:
    from .models import ScaffoldResult

console = Console()


# ---------------------------------------------------------------------------
# Immutable snapshots
# ---------------------------------------------------------------------------


def freeze(value: Any) -> Any:
    """Return a deeply read-only copy of *value*.

    Mappings become ``MappingProxyType`` over a fresh dict, lists, tuples and
    sets become tuples.  Scalars are returned unchanged.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return tuple(sorted((freeze(item) for item in value), key=repr))
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`: plain dicts and lists, safe to serialise."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# Dotted-path lookup
# ---------------------------------------------------------------------------


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def deep_get(data: Any, path: str | Sequence[str], default: Any = MISSING) -> Any:
    """Look up a dotted *path* (``"a.b.c"``) inside nested mappings.

    Sequence segments may be addressed by integer index (``"items.0"``).
    Objects that are not mappings are traversed by attribute.  Returns
    *default* when any segment is missing.
    """
    parts = path.split(".") if isinstance(path, str) else list(path)
    current = data
    for part in parts:
        if not part:
            return default
        if isinstance(current, Mapping):
            if part not in current:
                return default
            current = current[part]
        elif isinstance(current, Sequence) and not isinstance(current, str):
            if not part.isdigit() or int(part) >= len(current):
                return default
            current = current[int(part)]
        elif current is not None and not isinstance(current, (str, int, float, bool)):
            if part.startswith("_") or not hasattr(current, part):
                return default
            current = getattr(current, part)
        else:
            return default
    return current


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def slugify(value: str) -> str:
    """Convert a string to a URL/filename-safe slug.

    Examples::

        slugify("My Web App") -> "my-web-app"
        slugify("  2FA (TOTP)  ") -> "2fa-totp"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", str(value).lower().strip())
    return slug.strip("-")


def _words(value: str) -> list[str]:
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", str(value))
    return [word for word in re.split(r"[^A-Za-z0-9]+", spaced) if word]


def kebab_case(value: str) -> str:
    """``SomeThing`` / ``some_thing`` -> ``some-thing``."""
    return "-".join(word.lower() for word in _words(value))


def snake_case(value: str) -> str:
    """``SomeThing`` / ``some-thing`` -> ``some_thing``."""
    return "_".join(word.lower() for word in _words(value))


def pascal_case(value: str) -> str:
    """``some-thing`` / ``some_thing`` -> ``SomeThing``."""
    return "".join(word[:1].upper() + word[1:] for word in _words(value))


def camel_case(value: str) -> str:
    """``some-thing`` / ``some_thing`` -> ``someThing``."""
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(0.0042) -> "4ms"
        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0ms"
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    minutes = int(seconds // 60)
    if minutes == 0:
        return f"{seconds:.1f}s"
    return f"{minutes}m {int(seconds % 60)}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def create_progress(out: Console | None = None) -> Progress:
    """Create a Rich progress display for per-capability generation.

    Returns:
        A ``Progress`` instance suitable for use as a context manager.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=out or console,
    )


def print_scaffold_summary(result: "ScaffoldResult", out: Console | None = None) -> None:
    """Print the files a run produced (or would produce, when dry) as a table."""
    out = out or console
    title = "Scaffold preview (dry run)" if result.dry_run else "Scaffold result"
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Path", no_wrap=True)
    table.add_column("Operation")
    table.add_column("Source", style="dim")
    table.add_column("Note", style="dim")

    for gen_result in result.results:
        for spec in gen_result.files:
            table.add_row(
                spec.path, spec.operation.value, gen_result.plugin_id, spec.skip_reason or ""
            )
    for spec in result.merged_files:
        table.add_row(spec.path, spec.operation.value, ", ".join(spec.contributors), "merged")

    out.print(table)
    out.print(
        f"[green]{result.files_created} created[/green], "
        f"[cyan]{result.files_modified} modified[/cyan], "
        f"[yellow]{result.files_skipped} skipped[/yellow] "
        f"in {format_duration(result.duration)}"
    )
    for warning in result.warnings:
        out.print(f"[bold yellow]warning:[/bold yellow] {warning}")

