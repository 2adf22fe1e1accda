"""A prompt instructions file attached to a chat session."""

from pathlib import Path
from typing import Callable, List, Optional

from chat_context.events import Emitter, Unsubscribe
from chat_context.path_utils import PathLike, to_path
from chat_context.prompt_references import (
    ErrorStatus,
    FilePromptReference,
    PromptReference,
    aggregate_error_conditions,
)

# Builds the reference tree for a path
ReferenceFactory = Callable[[Path], PromptReference]

# Observer told when an attachment is disposed, with the attachment itself
DisposeObserver = Callable[["InstructionAttachment"], None]


class InstructionAttachment:
    """Prompt instructions attachment wrapping one reference tree.

    The attachment owns its reference tree: it starts its resolution,
    forwards its updates, and tears it down on disposal. Whoever holds
    the attachment passes ``on_dispose`` to learn when it goes away,
    whether it was disposed by the holder or by the UI.
    """

    def __init__(
        self,
        uri: PathLike,
        *,
        reference_factory: ReferenceFactory = FilePromptReference,
        on_dispose: Optional[DisposeObserver] = None,
    ):
        self.uri = to_path(uri)
        self._reference = reference_factory(self.uri)
        self._on_update = Emitter("instruction attachment update")
        self._reference_subscription = self._reference.on_update(self._on_update.fire)
        self._on_dispose = on_dispose
        self._enabled = True
        self._disposed = False

    @property
    def reference(self) -> PromptReference:
        return self._reference

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def error_condition(self) -> Optional[ErrorStatus]:
        """Aggregated status of the reference tree, None when it is healthy.

        Recomputed from the current tree on every access.
        """
        return aggregate_error_conditions(self._reference)

    @property
    def references(self) -> List[Path]:
        """Paths this attachment contributes to the request.

        All valid nested references followed by the file itself, or
        nothing when the attachment is disabled.
        """
        if not self._enabled:
            return []

        return [*self._reference.valid_file_reference_uris, self._reference.uri]

    def on_update(self, callback: Callable[[], None]) -> Unsubscribe:
        """Subscribe to reference tree changes and enabled-state toggles."""
        return self._on_update.subscribe(callback)

    def resolve(self) -> "InstructionAttachment":
        """Start resolving the reference tree and its nested references."""
        self._reference.resolve()
        return self

    def toggle(self) -> "InstructionAttachment":
        """Flip the enabled state."""
        self._enabled = not self._enabled
        self._on_update.fire()
        return self

    def dispose(self) -> None:
        """Dispose the attachment and its reference tree. Idempotent."""
        if self._disposed:
            return
        self._disposed = True

        if self._on_dispose is not None:
            self._on_dispose(self)

        self._reference_subscription()
        self._reference.dispose()
        self._on_update.dispose()

    def __repr__(self) -> str:
        return f"InstructionAttachment({str(self.uri)!r}, enabled={self._enabled})"
