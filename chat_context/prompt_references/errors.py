"""Error conditions attached to nodes of a prompt reference tree.

These are exception types so they can carry a cause and a message, but
the resolver records them on the reference node (``error_condition``)
instead of raising them. The attachment model only reads them.
"""

from pathlib import Path
from typing import Optional, Sequence


class PromptReferenceError(Exception):
    """Generic failure of a prompt file reference.

    Attributes:
        uri: Path of the reference the condition belongs to.
        message: Human-readable description.
    """

    def __init__(self, uri: Path, message: str):
        self.uri = uri
        self.message = message
        super().__init__(message)


class FileOpenFailed(PromptReferenceError):
    """The referenced file could not be read."""

    def __init__(self, uri: Path, cause: Optional[BaseException] = None):
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(uri, f"Failed to open file '{uri}'{detail}")


class RecursiveReference(PromptReferenceError):
    """The reference closes a cycle of nested references.

    Attributes:
        recursive_path: Paths in the order the chain was walked, from the
            root reference down to the repeated file (inclusive).
    """

    def __init__(self, uri: Path, recursive_path: Sequence[str]):
        self.recursive_path = list(recursive_path)
        super().__init__(
            uri,
            f"Recursive reference found: {' -> '.join(self.recursive_path)}",
        )


class NonPromptSnippetFile(PromptReferenceError):
    """The file is not a prompt snippet, so its contents are not parsed.

    Informational only: never shown to the user.
    """

    def __init__(self, uri: Path):
        super().__init__(uri, f"'{uri}' is not a prompt snippet file.")
