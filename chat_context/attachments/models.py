"""Data models for context attachments.

An attachment is anything the user attached to a chat or edit session:
a whole file, a range within a file, or an arbitrary variable. Entries
are identified by their ``id``; two entries with the same id are the same
attachment.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from chat_context.path_utils import PathLike, basename, file_uri_string, to_path


@dataclass(frozen=True)
class FileRange:
    """A range within a file, 1-based and inclusive."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def __str__(self) -> str:
        return (
            f"[{self.start_line},{self.start_column} -> "
            f"{self.end_line},{self.end_column}]"
        )


@dataclass(frozen=True)
class FileLocation:
    """A file together with a range in it."""
    uri: Path
    range: FileRange


@dataclass(frozen=True)
class AttachmentEntry:
    """One attachment of a session.

    Entries are immutable; replacing an attachment means deleting it and
    adding a new entry.

    Attributes:
        id: Unique key of the attachment.
        name: Display name.
        value: Path for files, FileLocation for ranges, anything for variables.
        is_file: Whether the entry counts against the file attachment limit.
        is_dynamic: Whether the entry was attached from the UI at runtime.
    """
    id: str
    name: str
    value: Any = None
    is_file: bool = False
    is_dynamic: bool = False

    @property
    def uri(self) -> Optional[Path]:
        """Path of the attached file, if the entry refers to one."""
        if isinstance(self.value, FileLocation):
            return self.value.uri
        if isinstance(self.value, Path):
            return self.value
        return None


def as_variable_entry(uri: PathLike, range: Optional[FileRange] = None) -> AttachmentEntry:
    """Build the attachment entry for a file or a range in a file.

    The id is the file URI, followed by the range when one is given, so
    the same range of the same file always maps to the same attachment.
    """
    path = to_path(uri)
    entry_id = file_uri_string(path) + (str(range) if range else "")

    return AttachmentEntry(
        id=entry_id,
        name=basename(path),
        value=FileLocation(uri=path, range=range) if range else path,
        is_file=True,
        is_dynamic=True,
    )
