"""Tests for aggregating reference tree error conditions."""

from pathlib import Path

import pytest

from chat_context.prompt_references import (
    FileOpenFailed,
    NonPromptSnippetFile,
    PromptReferenceError,
    RecursiveReference,
    aggregate_error_conditions,
    collect_error_conditions,
)
from chat_context.prompt_references.aggregator import NESTED_REFERENCE_PREFIX


class TestHealthyTrees:
    """Trees without user-visible conditions."""

    def test_tree_without_errors_has_no_status(self, fake_reference):
        root = fake_reference("/p/root.prompt.md", children=[
            fake_reference("/p/a.prompt.md"),
            fake_reference("/p/b.prompt.md"),
        ])

        assert aggregate_error_conditions(root) is None

    def test_non_prompt_snippet_root_is_ignored(self, fake_reference):
        """A non-snippet condition is never surfaced, even as the only one."""
        root = fake_reference(
            "/p/notes.md",
            error_condition=NonPromptSnippetFile(Path("/p/notes.md")),
        )

        assert aggregate_error_conditions(root) is None

    def test_non_prompt_snippet_children_are_ignored(self, fake_reference):
        child = fake_reference("/p/code.py", error_condition=NonPromptSnippetFile(Path("/p/code.py")))
        root = fake_reference("/p/root.prompt.md", children=[child])

        assert aggregate_error_conditions(root) is None
        assert collect_error_conditions(root) == []


class TestRootErrors:
    """Conditions on the root reference itself."""

    def test_root_error_is_error(self, fake_reference):
        error = FileOpenFailed(Path("/p/missing.prompt.md"))
        root = fake_reference("/p/missing.prompt.md", error_condition=error)

        status = aggregate_error_conditions(root)

        assert status is not None
        assert status.type == "error"
        assert status.is_error
        assert status.details == "Failed to open file '/p/missing.prompt.md'."

    def test_generic_condition_uses_its_message(self, fake_reference):
        error = PromptReferenceError(Path("/p/root.prompt.md"), "Something broke.")
        root = fake_reference("/p/root.prompt.md", error_condition=error)

        status = aggregate_error_conditions(root)

        assert status.type == "error"
        assert status.details == "Something broke."

    def test_recursive_reference_renders_base_names(self, fake_reference):
        error = RecursiveReference(
            Path("/p/x.prompt.md"),
            ["/p/x.prompt.md", "/p/sub/y.prompt.md", "/p/x.prompt.md"],
        )
        root = fake_reference("/p/x.prompt.md", error_condition=error)

        status = aggregate_error_conditions(root)

        assert status.details == (
            "Recursive reference found:\nx.prompt.md -> y.prompt.md -> x.prompt.md"
        )

    def test_recursive_path_x_y_x(self, fake_reference):
        error = RecursiveReference(Path("/p/x"), ["/p/x", "/q/y", "/p/x"])
        root = fake_reference("/p/x", error_condition=error)

        status = aggregate_error_conditions(root)

        assert status.details.endswith("x -> y -> x")


class TestNestedErrors:
    """Conditions on descendants only."""

    def test_descendant_error_is_warning_with_prefix(self, fake_reference):
        broken = fake_reference(
            "/p/gone.prompt.md",
            error_condition=FileOpenFailed(Path("/p/gone.prompt.md")),
        )
        root = fake_reference("/p/root.prompt.md", children=[
            fake_reference("/p/ok.prompt.md", children=[broken]),
        ])

        status = aggregate_error_conditions(root)

        assert status.type == "warning"
        assert status.details == (
            NESTED_REFERENCE_PREFIX + "Failed to open file '/p/gone.prompt.md'."
        )
        assert status.details.startswith("Contains a broken nested reference")


class TestMoreErrorsSuffix:
    """Counting additional conditions."""

    def test_three_errors_report_two_more(self, fake_reference):
        root = fake_reference(
            "/p/root.prompt.md",
            error_condition=PromptReferenceError(Path("/p/root.prompt.md"), "root failed"),
            children=[
                fake_reference("/p/a.prompt.md", error_condition=FileOpenFailed(Path("/p/a.prompt.md"))),
                fake_reference("/p/b.prompt.md", error_condition=FileOpenFailed(Path("/p/b.prompt.md"))),
            ],
        )

        status = aggregate_error_conditions(root)

        assert status.type == "error"
        assert status.details == "root failed\n-\n +2 more errors"

    def test_two_errors_report_singular(self, fake_reference):
        root = fake_reference("/p/root.prompt.md", children=[
            fake_reference("/p/a.prompt.md", error_condition=FileOpenFailed(Path("/p/a.prompt.md"))),
            fake_reference("/p/b.prompt.md", error_condition=FileOpenFailed(Path("/p/b.prompt.md"))),
        ])

        status = aggregate_error_conditions(root)

        assert status.type == "warning"
        assert status.details.endswith("\n-\n +1 more error")
        assert "/p/a.prompt.md" in status.details

    def test_ignorable_conditions_are_not_counted(self, fake_reference):
        root = fake_reference(
            "/p/root.prompt.md",
            error_condition=FileOpenFailed(Path("/p/root.prompt.md")),
            children=[
                fake_reference("/p/c.py", error_condition=NonPromptSnippetFile(Path("/p/c.py"))),
            ],
        )

        status = aggregate_error_conditions(root)

        assert "more error" not in status.details

    def test_first_condition_follows_pre_order(self, fake_reference):
        deep = fake_reference("/p/deep.prompt.md", error_condition=FileOpenFailed(Path("/p/deep.prompt.md")))
        later = fake_reference("/p/later.prompt.md", error_condition=FileOpenFailed(Path("/p/later.prompt.md")))
        root = fake_reference("/p/root.prompt.md", children=[
            fake_reference("/p/mid.prompt.md", children=[deep]),
            later,
        ])

        conditions = collect_error_conditions(root)

        assert conditions == [deep.error_condition, later.error_condition]
        assert "deep.prompt.md" in aggregate_error_conditions(root).details


class TestRecomputation:
    """Status follows the tree without caching."""

    def test_status_changes_with_tree(self, fake_reference):
        root = fake_reference("/p/root.prompt.md")
        assert aggregate_error_conditions(root) is None

        root.update(error_condition=FileOpenFailed(Path("/p/root.prompt.md")))
        assert aggregate_error_conditions(root).type == "error"

        root.update(error_condition=None)
        assert aggregate_error_conditions(root) is None


class TestContractViolation:
    """A condition vanishing between filter and read fails loudly."""

    def test_missing_condition_raises_assertion(self):
        class Flaky:
            uri = Path("/p/flaky.prompt.md")
            children = ()

            def __init__(self):
                self.reads = 0

            @property
            def error_condition(self):
                self.reads += 1
                if self.reads <= 2:
                    return FileOpenFailed(self.uri)
                return None

            def flatten(self):
                return [self]

        with pytest.raises(AssertionError):
            collect_error_conditions(Flaky())
