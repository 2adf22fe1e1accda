"""Identity-keyed store of the context attachments of a session."""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from chat_context.events import Emitter, Unsubscribe
from chat_context.instructions import (
    InstructionAttachmentRegistry,
    InstructionFileReader,
    ReferenceFactory,
)
from chat_context.path_utils import PathLike
from chat_context.prompt_references import FilePromptReference
from .models import AttachmentEntry, FileRange, as_variable_entry

logger = logging.getLogger(__name__)


class AttachmentStore:
    """Context attachments of a chat session, deduplicated by id.

    Event discipline:
    - add_context() fires one change event when at least one entry was
      inserted, none otherwise.
    - delete() and clear() always fire exactly one change event.
    - clear_and_set_context() fires the events of clear() and then of
      add_context().
    Events fire after the mutation is applied.

    The store also owns the session's prompt instruction attachments;
    their changes are reported through the same change event.
    """

    def __init__(
        self,
        reference_factory: ReferenceFactory = FilePromptReference,
        file_reader: Optional[InstructionFileReader] = None,
    ):
        self._attachments: Dict[str, AttachmentEntry] = {}
        self._on_did_change_context = Emitter("context change")

        self.prompt_instructions = InstructionAttachmentRegistry(
            reference_factory=reference_factory,
            file_reader=file_reader,
        )
        self._instructions_subscription = self.prompt_instructions.on_update(
            self._on_did_change_context.fire
        )

    def on_did_change_context(self, callback: Callable[[], None]) -> Unsubscribe:
        """Subscribe to any change of the attachments of this session."""
        return self._on_did_change_context.subscribe(callback)

    @property
    def attachments(self) -> List[AttachmentEntry]:
        """Current entries in insertion order."""
        return list(self._attachments.values())

    @property
    def size(self) -> int:
        return len(self._attachments)

    def get_attachment_ids(self) -> Set[str]:
        return set(self._attachments.keys())

    def __contains__(self, attachment_id: str) -> bool:
        return attachment_id in self._attachments

    def clear(self) -> None:
        self._attachments.clear()
        self._on_did_change_context.fire()

    def delete(self, *attachment_ids: str) -> None:
        """Remove entries by id. Unknown ids are ignored."""
        self._remove(attachment_ids)
        self._on_did_change_context.fire()

    def add_file(self, uri: PathLike, range: Optional[FileRange] = None) -> None:
        """Attach a file, or a range in it."""
        self.add_context(as_variable_entry(uri, range))

    def add_context(self, *attachments: AttachmentEntry) -> None:
        """Add entries whose id is not attached yet."""
        if self._insert(attachments):
            self._on_did_change_context.fire()

    def clear_and_set_context(self, *attachments: AttachmentEntry) -> None:
        self.clear()
        self.add_context(*attachments)

    def _insert(self, attachments: Iterable[AttachmentEntry]) -> bool:
        """Insert without notifying. Returns whether anything was inserted."""
        has_added = False
        for attachment in attachments:
            if attachment.id not in self._attachments:
                self._attachments[attachment.id] = attachment
                has_added = True
        return has_added

    def _remove(self, attachment_ids: Iterable[str]) -> None:
        for attachment_id in attachment_ids:
            self._attachments.pop(attachment_id, None)

    def add_prompt_instructions(self, uri: PathLike) -> "AttachmentStore":
        """Add a prompt instruction attachment for ``uri``."""
        self.prompt_instructions.add(uri)
        return self

    def remove_prompt_instructions(self, uri: PathLike) -> "AttachmentStore":
        """Remove the prompt instruction attachment for ``uri``."""
        self.prompt_instructions.remove(uri)
        return self

    async def list_prompt_instruction_files(self) -> List[Path]:
        """List all prompt instruction files available to attach."""
        return await self.prompt_instructions.list_instruction_files()

    def dispose(self) -> None:
        self._instructions_subscription()
        self.prompt_instructions.dispose()
        self._on_did_change_context.dispose()
        logger.debug("Disposed attachment store with %d attachment(s)", len(self._attachments))
