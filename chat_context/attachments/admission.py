"""Admission control for file attachments of an edit session.

An edit session can only work on a limited number of files at once. File
attachments beyond the limit are not dropped: they wait in an exclusion
queue and are admitted, oldest first, as soon as deleting other
attachments frees a slot. Non-file attachments are never limited.

Invariants, holding whenever control returns to the caller:
- the number of active file attachments never exceeds the limit because
  of an admission (lowering the limit does not evict anything);
- no id is both active and excluded.
"""

import logging
from typing import Callable, List, Optional, Set, Union

from chat_context.events import Emitter, Unsubscribe
from chat_context.instructions import InstructionFileReader, ReferenceFactory
from chat_context.prompt_references import FilePromptReference
from chat_context.trace import trace
from .models import AttachmentEntry
from .store import AttachmentStore

logger = logging.getLogger(__name__)

# Source of the current file limit, read on every admission decision
FileLimitSource = Callable[[], int]


class AdmissionController(AttachmentStore):
    """Attachment store that caps the number of active file attachments."""

    def __init__(
        self,
        file_limit: Union[int, FileLimitSource],
        reference_factory: ReferenceFactory = FilePromptReference,
        file_reader: Optional[InstructionFileReader] = None,
    ):
        super().__init__(reference_factory=reference_factory, file_reader=file_reader)
        if callable(file_limit):
            self._get_file_limit: FileLimitSource = file_limit
        else:
            fixed = int(file_limit)
            self._get_file_limit = lambda: fixed
        self._excluded_file_attachments: List[AttachmentEntry] = []
        self._on_file_limit_exceeded = Emitter("file limit exceeded")

    def on_file_limit_exceeded(self, callback: Callable[[], None]) -> Unsubscribe:
        """Subscribe to file attachments being queued instead of admitted."""
        return self._on_file_limit_exceeded.subscribe(callback)

    @property
    def file_limit(self) -> int:
        return max(0, int(self._get_file_limit()))

    @property
    def file_attachments(self) -> List[AttachmentEntry]:
        return [attachment for attachment in self.attachments if attachment.is_file]

    @property
    def excluded_file_attachments(self) -> List[AttachmentEntry]:
        """File attachments waiting for a free slot, oldest first."""
        return list(self._excluded_file_attachments)

    def _excluded_ids(self) -> Set[str]:
        return {attachment.id for attachment in self._excluded_file_attachments}

    def _available_file_count(self) -> int:
        return max(0, self.file_limit - len(self.file_attachments))

    def add_context(self, *attachments: AttachmentEntry) -> None:
        """Add entries, queueing file entries that exceed the limit.

        File entries are admitted in input order while slots are free; the
        rest is appended to the exclusion queue in input order. Duplicates,
        within the call or of active entries, are dropped.
        """
        current_ids = self.get_attachment_ids()
        file_attachments = [a for a in attachments if a.is_file]
        other_attachments = [a for a in attachments if not a.is_file]

        new_file_attachments: List[AttachmentEntry] = []
        new_file_ids: Set[str] = set()
        for attachment in file_attachments:
            if attachment.id in new_file_ids or attachment.id in current_ids:
                continue
            new_file_ids.add(attachment.id)
            new_file_attachments.append(attachment)

        available = self._available_file_count()
        to_admit = new_file_attachments[:available]

        # An entry admitted now must not stay queued from an earlier call
        admitted_ids = {attachment.id for attachment in other_attachments + to_admit}
        self._excluded_file_attachments = [
            a for a in self._excluded_file_attachments if a.id not in admitted_ids
        ]

        excluded_ids = self._excluded_ids()
        newly_excluded: List[AttachmentEntry] = []
        for attachment in new_file_attachments[available:]:
            if attachment.id in excluded_ids:
                continue
            excluded_ids.add(attachment.id)
            newly_excluded.append(attachment)
        self._excluded_file_attachments.extend(newly_excluded)

        has_added = self._insert(other_attachments + to_admit)

        if has_added or newly_excluded:
            self._on_did_change_context.fire()

        if newly_excluded:
            logger.debug(
                "File limit %d reached, excluded %d attachment(s)",
                self.file_limit, len(newly_excluded),
            )
            trace("AdmissionController", f"excluded {[a.id for a in newly_excluded]}")
            self._on_file_limit_exceeded.fire()

    def delete(self, *attachment_ids: str) -> None:
        """Remove entries, active or queued, then re-admit queued files.

        Re-admission only depends on free capacity, not on which ids were
        deleted.
        """
        removed_ids = set(attachment_ids)
        self._excluded_file_attachments = [
            a for a in self._excluded_file_attachments if a.id not in removed_ids
        ]

        self._remove(attachment_ids)

        available = self._available_file_count()
        if available > 0 and self._excluded_file_attachments:
            readmitted = self._excluded_file_attachments[:available]
            del self._excluded_file_attachments[:available]
            self._insert(readmitted)
            trace("AdmissionController", f"re-admitted {[a.id for a in readmitted]}")

        self._on_did_change_context.fire()

    def clear(self) -> None:
        self._excluded_file_attachments.clear()
        super().clear()

    def dispose(self) -> None:
        self._on_file_limit_exceeded.dispose()
        super().dispose()
