"""Path helpers for attachment identity.

Attachments and instruction files are identified by strings derived from
their paths, so the same file must always produce the same key regardless
of the separator style or relative form it was given in.

    path_key("docs/guide.md")        -> "/work/docs/guide.md" (cwd /work)
    file_uri_string("/work/a b.md")  -> "file:///work/a%20b.md"
    basename("/work/docs/guide.md")  -> "guide.md"
"""

import os
import sys
from pathlib import Path, PurePosixPath
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


def normalize_for_comparison(path: str) -> str:
    """Normalize path separators for consistent string comparison.

    On Windows, converts backslashes to forward slashes so that equality
    checks work regardless of which separator was used to build the path.
    Unchanged on Unix.
    """
    if not path:
        return path

    if sys.platform == 'win32':
        return path.replace('\\', '/')

    return path


def to_path(path: PathLike) -> Path:
    """Return an absolute Path without resolving symlinks."""
    return Path(os.path.abspath(os.fspath(path)))


def path_key(path: PathLike) -> str:
    """Key used to identify a file across the attachment model."""
    return normalize_for_comparison(str(to_path(path)))


def file_uri_string(path: PathLike) -> str:
    """Return the ``file://`` URI string for a path."""
    return to_path(path).as_uri()


def basename(path: PathLike) -> str:
    """Base name of a path, accepting either separator style."""
    return PurePosixPath(normalize_for_comparison(os.fspath(path))).name
