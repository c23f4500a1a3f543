"""Condition expressions used to gate file generation.

The grammar is intentionally tiny::

    condition  := ""                       (always true)
                | "!" condition            (negation)
                | "true" | "false"
                | path ".includes(" quoted ")"
                | path                     (truthiness of the looked-up value)
    path       := segment ("." segment)*

Expressions are parsed once into a small tree of frozen dataclasses and
evaluated against a context mapping.  Evaluation never raises: a reference
that does not resolve, or an expression that does not parse, is false.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Union

from ..utils import MISSING, deep_get


_SEGMENT = r"[A-Za-z0-9_$][\w$-]*"
_PATH_RE = re.compile(rf"^{_SEGMENT}(?:\.{_SEGMENT})*$")
_INCLUDES_RE = re.compile(
    rf"^(?P<path>{_SEGMENT}(?:\.{_SEGMENT})*)\.includes\(\s*(?P<q>['\"])(?P<value>.*?)(?P=q)\s*\)$"
)


@dataclass(frozen=True)
class Literal:
    value: bool


@dataclass(frozen=True)
class Negation:
    operand: "Condition"


@dataclass(frozen=True)
class PathLookup:
    path: str


@dataclass(frozen=True)
class MembershipCheck:
    path: str
    value: str


Condition = Union[Literal, Negation, PathLookup, MembershipCheck]


@lru_cache(maxsize=512)
def parse_condition(expr: str | None) -> Condition:
    """Parse *expr* into a condition tree.  Results are cached per string."""
    text = (expr or "").strip()
    if not text:
        return Literal(True)
    if text.startswith("!"):
        return Negation(parse_condition(text[1:]))
    if text in ("true", "false"):
        return Literal(text == "true")

    match = _INCLUDES_RE.match(text)
    if match:
        return MembershipCheck(match.group("path"), match.group("value"))
    if _PATH_RE.match(text):
        return PathLookup(text)
    return Literal(False)


def evaluate(node: Condition, context: Any) -> bool:
    """Evaluate a parsed condition against *context*."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Negation):
        return not evaluate(node.operand, context)
    if isinstance(node, PathLookup):
        value = deep_get(context, node.path)
        return value is not MISSING and bool(value)
    if isinstance(node, MembershipCheck):
        collection = deep_get(context, node.path)
        if isinstance(collection, (list, tuple)):
            return node.value in collection
        return False
    raise TypeError(f"Unsupported condition node: {node!r}")


def evaluate_condition(expr: str | None, context: Any) -> bool:
    """Parse (cached) and evaluate *expr* against *context*."""
    return evaluate(parse_condition(expr), context)
