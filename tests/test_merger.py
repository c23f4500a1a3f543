"""Tests for ContributionMerger and deep_merge.

Covers:
- replace: last writer in application order wins
- append: concatenation with exactly one newline between parts
- Folding onto the existing on-disk content
- merge-structured: JSON and YAML deep merge
- Ambiguous strategies and unparseable documents
- Default strategies by path and validation warnings
"""

from __future__ import annotations

import json

import pytest
import yaml

from scaffold_core.errors import (
    MergeConflictAmbiguityError,
    StructuredMergeError,
    UnknownCapabilityError,
)
from scaffold_core.models import FileContribution, MergeStrategy
from scaffold_core.scaffolder.merger import ContributionMerger, deep_merge


pytestmark = pytest.mark.unit


ORDER = ["type-checking", "linting", "testing", "web-app"]


def _contribution(plugin_id: str, path: str, content: str, strategy=None, priority=None):
    return FileContribution(
        plugin_id=plugin_id,
        path=path,
        content=content,
        merge_strategy=strategy,
        priority=priority,
    )


@pytest.fixture
def merger() -> ContributionMerger:
    return ContributionMerger()


# ---------------------------------------------------------------------------
# replace
# ---------------------------------------------------------------------------


class TestReplace:
    @pytest.mark.parametrize("reverse", [False, True])
    def test_highest_priority_wins(self, merger: ContributionMerger, reverse: bool) -> None:
        contributions = [
            _contribution("linting", "Makefile", "low", MergeStrategy.REPLACE, priority=0),
            _contribution("testing", "Makefile", "high", MergeStrategy.REPLACE, priority=5),
        ]
        if reverse:
            contributions.reverse()

        (merged,) = merger.merge(contributions, ORDER)

        assert merged.content == "high"
        assert merged.merge_strategy == MergeStrategy.REPLACE
        assert merged.contributors == ("linting", "testing")

    def test_resolved_order_breaks_priority_ties(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("web-app", "Makefile", "web", MergeStrategy.REPLACE, priority=1),
            _contribution("linting", "Makefile", "lint", MergeStrategy.REPLACE, priority=1),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert merged.content == "web"

    def test_declaration_order_breaks_remaining_ties(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "Makefile", "first", MergeStrategy.REPLACE),
            _contribution("linting", "Makefile", "second", MergeStrategy.REPLACE),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert merged.content == "second"

    def test_single_contribution_is_verbatim(self, merger: ContributionMerger) -> None:
        (merged,) = merger.merge([_contribution("linting", "VERSION", "1.0", MergeStrategy.REPLACE)], ORDER)
        assert merged.content == "1.0"


# ---------------------------------------------------------------------------
# append
# ---------------------------------------------------------------------------


class TestAppend:
    def test_joins_with_single_newlines(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("testing", ".gitignore", ".pytest_cache/\n\n", MergeStrategy.APPEND, priority=30),
            _contribution("type-checking", ".gitignore", ".mypy_cache/", MergeStrategy.APPEND, priority=10),
            _contribution("linting", ".gitignore", ".ruff_cache/\n", MergeStrategy.APPEND, priority=20),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert merged.content == ".mypy_cache/\n.ruff_cache/\n.pytest_cache/\n\n"
        assert merged.contributors == ("type-checking", "linting", "testing")
        assert merged.priority == 30

    def test_missing_priority_counts_as_zero(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "notes.md", "B", MergeStrategy.APPEND, priority=1),
            _contribution("web-app", "notes.md", "A", MergeStrategy.APPEND),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert merged.content == "A\nB\n"

    def test_trailing_blank_line_is_kept(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "notes.md", "## Lint\n\n", MergeStrategy.APPEND, priority=1),
            _contribution("testing", "notes.md", "## Tests\n", MergeStrategy.APPEND, priority=2),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert merged.content == "## Lint\n\n## Tests\n"


# ---------------------------------------------------------------------------
# Existing on-disk content
# ---------------------------------------------------------------------------


class TestExistingContent:
    def test_append_keeps_existing_text(self, merger: ContributionMerger) -> None:
        contributions = [_contribution("testing", "README.md", "## Tests\n", MergeStrategy.APPEND)]
        (merged,) = merger.merge(
            contributions, ORDER, {"README.md": "# My project\nUSER NOTES\n"}
        )
        assert merged.content == "# My project\nUSER NOTES\n## Tests\n"

    def test_append_skips_blocks_already_present(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("type-checking", ".gitignore", ".mypy_cache/\n", MergeStrategy.APPEND, priority=1),
            _contribution("testing", ".gitignore", ".pytest_cache/\n", MergeStrategy.APPEND, priority=2),
        ]
        (merged,) = merger.merge(contributions, ORDER, {".gitignore": "*.log\n.mypy_cache/\n"})
        assert merged.content == "*.log\n.mypy_cache/\n.pytest_cache/\n"

    def test_append_is_stable_on_its_own_output(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "README.md", "## Lint\n\nRun ruff.\n", MergeStrategy.APPEND, priority=1),
            _contribution("testing", "README.md", "## Tests\n\nRun pytest.\n", MergeStrategy.APPEND, priority=2),
        ]
        (first,) = merger.merge(contributions, ORDER)
        (second,) = merger.merge(contributions, ORDER, {"README.md": first.content})
        assert second.content == first.content

    def test_structured_merges_onto_existing_document(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "config/tooling.json", '{"tools": ["ruff"], "line": 100}'),
        ]
        existing = {"config/tooling.json": '{"tools": ["custom"], "line": 80, "owner": "me"}'}
        (merged,) = merger.merge(contributions, ORDER, existing)
        assert json.loads(merged.content) == {"tools": ["custom", "ruff"], "line": 100, "owner": "me"}

    def test_unparseable_existing_document(self, merger: ContributionMerger) -> None:
        contributions = [_contribution("linting", "ci.yml", "a: 1\n")]
        with pytest.raises(StructuredMergeError, match="existing file"):
            merger.merge(contributions, ORDER, {"ci.yml": "a: [1\n"})

    def test_replace_ignores_existing(self, merger: ContributionMerger) -> None:
        contributions = [_contribution("linting", "Makefile", "lint:\n\truff .\n")]
        (merged,) = merger.merge(contributions, ORDER, {"Makefile": "old\n"})
        assert merged.content == "lint:\n\truff .\n"

    def test_absent_file_merges_as_before(self, merger: ContributionMerger) -> None:
        contributions = [_contribution("linting", "notes.md", "A", MergeStrategy.APPEND)]
        (merged,) = merger.merge(contributions, ORDER, {"notes.md": None})
        assert merged.content == "A\n"


# ---------------------------------------------------------------------------
# merge-structured
# ---------------------------------------------------------------------------


class TestMergeStructured:
    def test_json_deep_merge(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("type-checking", "config/tooling.json", '{"tools": ["mypy"], "opts": {"strict": true}}', priority=10),
            _contribution("linting", "config/tooling.json", '{"tools": ["ruff", "mypy"], "opts": {"line": 100}}', priority=20),
        ]
        (merged,) = merger.merge(contributions, ORDER)

        assert merged.merge_strategy == MergeStrategy.MERGE_STRUCTURED
        assert json.loads(merged.content) == {
            "tools": ["mypy", "ruff"],
            "opts": {"strict": True, "line": 100},
        }
        assert merged.content.endswith("}\n")

    def test_scalar_conflict_last_wins(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "settings.json", '{"level": "warn"}', priority=50),
            _contribution("testing", "settings.json", '{"level": "error"}', priority=5),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert json.loads(merged.content) == {"level": "warn"}

    def test_yaml_documents(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "ci.yml", "jobs:\n  lint:\n    run: ruff\n"),
            _contribution("testing", "ci.yml", "jobs:\n  test:\n    run: pytest\n"),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert yaml.safe_load(merged.content) == {
            "jobs": {"lint": {"run": "ruff"}, "test": {"run": "pytest"}}
        }
        # Key order follows application order.
        assert merged.content.index("lint") < merged.content.index("test")

    def test_empty_document_is_empty_mapping(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "a.json", "  "),
            _contribution("testing", "a.json", '{"x": 1}'),
        ]
        (merged,) = merger.merge(contributions, ORDER)
        assert json.loads(merged.content) == {"x": 1}

    def test_unparseable_document(self, merger: ContributionMerger) -> None:
        contributions = [_contribution("linting", "a.json", "{not json")]
        with pytest.raises(StructuredMergeError) as exc_info:
            merger.merge(contributions, ORDER)
        assert exc_info.value.plugin_id == "linting"
        assert exc_info.value.path == "a.json"


class TestDeepMerge:
    def test_nested(self) -> None:
        base = {"a": {"b": 1, "c": [1, 2]}, "keep": True}
        incoming = {"a": {"c": [2, 3], "d": "x"}}
        assert deep_merge(base, incoming) == {"a": {"b": 1, "c": [1, 2, 3], "d": "x"}, "keep": True}

    def test_does_not_mutate_inputs(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}

    def test_type_mismatch_takes_incoming(self) -> None:
        assert deep_merge({"a": [1]}, {"a": {"b": 1}}) == {"a": {"b": 1}}
        assert deep_merge([1], "x") == "x"


# ---------------------------------------------------------------------------
# Errors, defaults and validation
# ---------------------------------------------------------------------------


class TestMergeErrors:
    def test_mixed_strategies_are_ambiguous(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "README.md", "a", MergeStrategy.APPEND),
            _contribution("testing", "README.md", "b", MergeStrategy.REPLACE),
        ]
        with pytest.raises(MergeConflictAmbiguityError) as exc_info:
            merger.merge(contributions, ORDER)
        assert exc_info.value.path == "README.md"
        assert exc_info.value.strategies == {"linting": "append", "testing": "replace"}

    def test_contributor_outside_resolved_order(self, merger: ContributionMerger) -> None:
        with pytest.raises(UnknownCapabilityError):
            merger.merge([_contribution("ghost", "x.txt", "x")], ORDER)


class TestDefaults:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("package.json", MergeStrategy.MERGE_STRUCTURED),
            ("config/app.YAML", MergeStrategy.MERGE_STRUCTURED),
            (".github/ci.yml", MergeStrategy.MERGE_STRUCTURED),
            (".gitignore", MergeStrategy.APPEND),
            (".env.example", MergeStrategy.APPEND),
            ("docs/README.md", MergeStrategy.APPEND),
            ("Makefile", MergeStrategy.REPLACE),
        ],
    )
    def test_default_merge_strategy(self, path: str, expected: MergeStrategy) -> None:
        assert ContributionMerger.default_merge_strategy(path) == expected

    def test_one_spec_per_path_in_first_seen_order(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "b.md", "1"),
            _contribution("linting", "a.md", "2"),
            _contribution("testing", "b.md", "3"),
        ]
        merged = merger.merge(contributions, ORDER)
        assert [spec.path for spec in merged] == ["b.md", "a.md"]

    def test_validate_warns_about_lost_replacements(self, merger: ContributionMerger) -> None:
        contributions = [
            _contribution("linting", "Makefile", "a"),
            _contribution("testing", "Makefile", "b"),
            _contribution("linting", ".gitignore", "x"),
        ]
        warnings = merger.validate(contributions)
        assert len(warnings) == 1
        assert "Makefile" in warnings[0]
        assert "linting, testing" in warnings[0]

    def test_validate_warns_about_repeated_replace_from_one_capability(
        self, merger: ContributionMerger
    ) -> None:
        contributions = [
            _contribution("linting", "Makefile", "a"),
            _contribution("linting", "Makefile", "b"),
        ]
        warnings = merger.validate(contributions)
        assert any("'linting' declares 2 'replace' contributions to 'Makefile'" in w for w in warnings)
