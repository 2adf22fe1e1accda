"""Summarize the error conditions of a prompt reference tree.

The whole tree is reduced to at most one status for display: an
``error`` when the root reference itself failed, a ``warning`` when only
nested references failed (the attachment is still partially usable).
The result is computed from the current tree on every call; callers
re-run it whenever the tree announces an update.
"""

from dataclasses import dataclass
from typing import List, Optional

from chat_context.path_utils import basename
from .errors import (
    FileOpenFailed,
    NonPromptSnippetFile,
    PromptReferenceError,
    RecursiveReference,
)
from .reference import PromptReference

ERROR = "error"
WARNING = "warning"

NESTED_REFERENCE_PREFIX = "Contains a broken nested reference that will be ignored: "


@dataclass(frozen=True)
class ErrorStatus:
    """Aggregated status of one instruction attachment.

    Attributes:
        type: "error" or "warning".
        details: Message for the user.
    """
    type: str
    details: str

    @property
    def is_error(self) -> bool:
        return self.type == ERROR


def collect_error_conditions(root: PromptReference) -> List[PromptReferenceError]:
    """Error conditions of the tree in pre-order, excluding ignorable ones."""
    failed = [
        reference for reference in root.flatten()
        if reference.error_condition is not None
        and not isinstance(reference.error_condition, NonPromptSnippetFile)
    ]

    conditions: List[PromptReferenceError] = []
    for reference in failed:
        condition = reference.error_condition
        # Guaranteed by the filter above
        assert condition is not None, (
            f"Error condition must be present for '{reference.uri}'."
        )
        conditions.append(condition)
    return conditions


def format_error_message(error: PromptReferenceError, is_root_error: bool) -> str:
    prefix = "" if is_root_error else NESTED_REFERENCE_PREFIX

    if isinstance(error, FileOpenFailed):
        return f"{prefix}Failed to open file '{error.uri.as_posix()}'."

    if isinstance(error, RecursiveReference):
        chain = " -> ".join(basename(path) for path in error.recursive_path)
        return f"{prefix}Recursive reference found:\n{chain}"

    return f"{prefix}{error.message}"


def aggregate_error_conditions(root: PromptReference) -> Optional[ErrorStatus]:
    """Reduce the tree rooted at ``root`` to a single status.

    Args:
        root: Root node of the reference tree.

    Returns:
        None when no reference has a user-visible error condition,
        otherwise the status derived from the first condition in
        traversal order, with a count of the remaining ones.
    """
    conditions = collect_error_conditions(root)
    if not conditions:
        return None

    first_error, rest = conditions[0], conditions[1:]

    # Identity, not equality: only the root's own condition is an error
    is_root_error = first_error is root.error_condition
    details = format_error_message(first_error, is_root_error)

    if rest:
        plural = "s" if len(rest) > 1 else ""
        details += f"\n-\n +{len(rest)} more error{plural}"

    return ErrorStatus(type=ERROR if is_root_error else WARNING, details=details)
