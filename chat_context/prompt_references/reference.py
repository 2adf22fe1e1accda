"""File-backed prompt reference trees.

A prompt snippet file (``*.prompt.md``) may reference other files, either
with a ``#file:<path>`` token or with a markdown link ``[text](<path>)``.
Relative paths are resolved against the directory of the referencing
file. Each referenced file becomes a child node; prompt snippet children
are parsed in turn, other files are only checked for readability.

Resolution is asynchronous (file reads run in a worker thread via
``asyncio.to_thread``) and every state change is announced through
``on_update``, so a consumer can recompute whatever it derives from the
tree. The tree is only ever written by its own resolution task.

Example:
    reference = FilePromptReference(Path("/work/.chat/prompts/style.prompt.md"))
    reference.on_update(lambda: print(reference.error_condition))
    await reference.resolve_async()
    for node in reference.flatten():
        print(node.uri, node.error_condition)
"""

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, runtime_checkable

from chat_context.events import Emitter, Unsubscribe
from chat_context.path_utils import PathLike, path_key, to_path
from chat_context.trace import trace
from .errors import (
    FileOpenFailed,
    NonPromptSnippetFile,
    PromptReferenceError,
    RecursiveReference,
)

logger = logging.getLogger(__name__)

# Extension of files whose contents are parsed for nested references
PROMPT_SNIPPET_FILE_EXTENSION = ".prompt.md"

# Maximum nesting depth, to stop runaway resolution of long chains
MAX_REFERENCE_DEPTH = 10

# #file:./relative/path.md  (path runs until whitespace or closing punctuation)
FILE_TOKEN_PATTERN = re.compile(r'(?:^|(?<=\s))#file:(?P<path>[^\s)\]>]+)')
# [label](./relative/path.md)
MARKDOWN_LINK_PATTERN = re.compile(r'\[[^\]]*\]\((?P<path>[^)\s]+)\)')
# scheme:// or mailto: style targets are not local file references
_URL_SCHEME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*:(?://)?')


@runtime_checkable
class PromptReference(Protocol):
    """Read-only view of one node in a prompt reference tree.

    This is what the attachment model consumes. Any resolver can be
    plugged in as long as it honours this contract.
    """

    uri: Path

    @property
    def error_condition(self) -> Optional[PromptReferenceError]: ...

    @property
    def children(self) -> Sequence["PromptReference"]: ...

    @property
    def valid_file_reference_uris(self) -> List[Path]: ...

    def flatten(self) -> List["PromptReference"]: ...

    def on_update(self, callback: Callable[[], None]) -> Unsubscribe: ...

    def resolve(self) -> "PromptReference": ...

    def dispose(self) -> None: ...


def is_prompt_snippet_file(path: PathLike) -> bool:
    """Check whether a file is parsed for nested references."""
    return os.fspath(path).lower().endswith(PROMPT_SNIPPET_FILE_EXTENSION)


def find_file_references(content: str, base_dir: Path) -> List[Path]:
    """Find local file references in prompt content.

    Args:
        content: Text of a prompt snippet file.
        base_dir: Directory relative paths are resolved against.

    Returns:
        Absolute paths in order of first appearance, without duplicates.
    """
    found: List[tuple] = []
    for pattern in (FILE_TOKEN_PATTERN, MARKDOWN_LINK_PATTERN):
        for match in pattern.finditer(content):
            found.append((match.start(), match.group("path")))

    paths: List[Path] = []
    seen = set()
    for _, raw in sorted(found, key=lambda item: item[0]):
        target = raw.split("#", 1)[0]
        if not target or _URL_SCHEME_PATTERN.match(target):
            continue

        path = Path(target)
        if not path.is_absolute():
            path = base_dir / path
        path = to_path(os.path.normpath(path))

        key = path_key(path)
        if key in seen:
            continue
        seen.add(key)
        paths.append(path)

    return paths


class FilePromptReference:
    """A prompt file reference and the references nested in it.

    Attributes:
        uri: Absolute path of the referenced file.
    """

    def __init__(
        self,
        uri: PathLike,
        *,
        seen_paths: Sequence[str] = (),
        depth: int = 0,
    ):
        """Create an unresolved reference.

        Args:
            uri: Path of the file.
            seen_paths: Keys of the files on the chain from the root to the
                parent of this reference, used for cycle detection.
            depth: Nesting depth, 0 for the root.
        """
        self.uri = to_path(uri)
        self._seen_paths = list(seen_paths)
        self._depth = depth
        self._error_condition: Optional[PromptReferenceError] = None
        self._children: List["FilePromptReference"] = []
        self._child_subscriptions: List[Unsubscribe] = []
        self._on_update = Emitter("prompt reference update")
        self._task: Optional[asyncio.Task] = None
        self._resolved = False
        self._disposed = False

    @property
    def error_condition(self) -> Optional[PromptReferenceError]:
        return self._error_condition

    @property
    def children(self) -> Sequence["FilePromptReference"]:
        return tuple(self._children)

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def disposed(self) -> bool:
        return self._disposed

    def flatten(self) -> List["FilePromptReference"]:
        """All references of the tree in pre-order, the root first."""
        result: List["FilePromptReference"] = [self]
        for child in self._children:
            result.extend(child.flatten())
        return result

    @property
    def valid_file_reference_uris(self) -> List[Path]:
        """Paths of all nested references that resolved to readable files.

        Non-snippet files count as valid: they are readable, just not parsed.
        """
        uris: List[Path] = []
        for reference in self.flatten()[1:]:
            error = reference.error_condition
            if error is None or isinstance(error, NonPromptSnippetFile):
                uris.append(reference.uri)
        return uris

    def on_update(self, callback: Callable[[], None]) -> Unsubscribe:
        """Subscribe to changes anywhere in this tree."""
        return self._on_update.subscribe(callback)

    def resolve(self) -> "FilePromptReference":
        """Start resolving the tree.

        Inside a running event loop this schedules a task and returns
        immediately; calling it again while that task is in flight does
        not start another one. Without a running loop (a synchronous
        host) the whole tree is resolved before returning.
        """
        if self._disposed:
            return self

        if self._task is not None and not self._task.done():
            return self

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, resolving %s synchronously", self.uri)
            asyncio.run(self.resolve_async())
            return self

        self._task = loop.create_task(self.resolve_async())
        return self

    async def resolve_async(self) -> None:
        """Resolve this reference and, recursively, its children."""
        if self._disposed:
            return

        key = path_key(self.uri)

        if key in self._seen_paths:
            self._set_state(
                RecursiveReference(self.uri, self._seen_paths + [key]), [],
            )
            return

        if self._depth > MAX_REFERENCE_DEPTH:
            self._set_state(
                PromptReferenceError(
                    self.uri,
                    f"Reference nesting is deeper than {MAX_REFERENCE_DEPTH} levels.",
                ),
                [],
            )
            return

        is_snippet = is_prompt_snippet_file(self.uri)
        # ValueError: the path itself is unusable, e.g. an embedded NUL
        try:
            content = await asyncio.to_thread(_read_file, self.uri, is_snippet)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            if self._disposed:
                return
            trace(
                "FilePromptReference",
                f"failed to open {self.uri}: {e}",
                include_traceback=True,
            )
            self._set_state(FileOpenFailed(self.uri, e), [])
            return

        # Disposed while the read was in flight
        if self._disposed:
            return

        if not is_snippet:
            self._set_state(NonPromptSnippetFile(self.uri), [])
            return

        child_seen = self._seen_paths + [key]
        children = [
            FilePromptReference(path, seen_paths=child_seen, depth=self._depth + 1)
            for path in find_file_references(content, self.uri.parent)
        ]
        self._set_state(None, children)
        logger.debug("Resolved %s with %d nested reference(s)", self.uri, len(children))

        if children:
            await asyncio.gather(*(child.resolve_async() for child in children))

    def _set_state(
        self,
        error_condition: Optional[PromptReferenceError],
        children: List["FilePromptReference"],
    ) -> None:
        self._drop_children()

        self._error_condition = error_condition
        self._children = children
        for child in children:
            self._child_subscriptions.append(child.on_update(self._on_update.fire))
        self._resolved = True

        self._on_update.fire()

    def _drop_children(self) -> None:
        for unsubscribe in self._child_subscriptions:
            unsubscribe()
        self._child_subscriptions = []
        for child in self._children:
            child.dispose()
        self._children = []

    def dispose(self) -> None:
        """Cancel pending resolution and tear down the tree.

        A result arriving after disposal is discarded.
        """
        if self._disposed:
            return
        self._disposed = True

        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

        self._drop_children()
        self._on_update.dispose()

    def __repr__(self) -> str:
        return f"FilePromptReference({str(self.uri)!r}, error={self._error_condition!r})"


def _read_file(path: Path, read_content: bool) -> str:
    """Read a file, or only check that it is a readable regular file."""
    if read_content:
        return path.read_text(encoding="utf-8")

    if not path.is_file():
        raise FileNotFoundError(f"Not a file: {path}")
    with open(path, "rb"):
        pass
    return ""
