"""Template expansion and condition evaluation."""

from scaffold_core.renderer.conditions import (
    Condition,
    Literal,
    MembershipCheck,
    Negation,
    PathLookup,
    evaluate,
    evaluate_condition,
    parse_condition,
)
from scaffold_core.renderer.templates import TemplateRenderer

__all__ = [
    "Condition",
    "Literal",
    "MembershipCheck",
    "Negation",
    "PathLookup",
    "TemplateRenderer",
    "evaluate",
    "evaluate_condition",
    "parse_condition",
]
