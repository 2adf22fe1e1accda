"""Registry of the prompt instruction attachments of a session."""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from chat_context.events import Emitter, Unsubscribe
from chat_context.path_utils import PathLike, path_key
from chat_context.prompt_references import FilePromptReference
from chat_context.trace import trace
from .attachment import InstructionAttachment, ReferenceFactory
from .file_reader import InstructionFileReader

logger = logging.getLogger(__name__)


class InstructionAttachmentRegistry:
    """Prompt instruction attachments keyed by normalized path.

    The registry creates attachments, starts their resolution, and
    re-emits their updates as its own ``on_update``. An attachment that is
    disposed, by the registry or by anyone else, is evicted through the
    dispose observer it was created with.
    """

    def __init__(
        self,
        reference_factory: ReferenceFactory = FilePromptReference,
        file_reader: Optional[InstructionFileReader] = None,
    ):
        self._reference_factory = reference_factory
        self._file_reader = file_reader or InstructionFileReader()
        self._instructions: Dict[str, InstructionAttachment] = {}
        self._subscriptions: Dict[str, Unsubscribe] = {}
        self._on_update = Emitter("instruction registry update")
        self._on_add = Emitter("instruction registry add")
        self._disposed = False

    def on_update(self, callback: Callable[[], None]) -> Unsubscribe:
        """Subscribe to any change of the registry or of its attachments."""
        return self._on_update.subscribe(callback)

    def on_add(self, callback: Callable[[InstructionAttachment], None]) -> Unsubscribe:
        """Subscribe to newly added attachments."""
        return self._on_add.subscribe(callback)

    @property
    def attachments(self) -> List[InstructionAttachment]:
        return list(self._instructions.values())

    @property
    def references(self) -> List[Path]:
        """Paths contributed by all enabled attachments."""
        result: List[Path] = []
        for instruction in self._instructions.values():
            result.extend(instruction.references)
        return result

    @property
    def empty(self) -> bool:
        return not self._instructions

    def get(self, uri: PathLike) -> Optional[InstructionAttachment]:
        return self._instructions.get(path_key(uri))

    def __contains__(self, uri: PathLike) -> bool:
        return path_key(uri) in self._instructions

    def __len__(self) -> int:
        return len(self._instructions)

    def add(self, uri: PathLike) -> "InstructionAttachmentRegistry":
        """Add an instruction attachment for ``uri``. No-op if already present."""
        key = path_key(uri)
        if key in self._instructions:
            return self

        instruction = InstructionAttachment(
            uri,
            reference_factory=self._reference_factory,
            on_dispose=lambda disposed: self._evict(key, disposed),
        )

        try:
            instruction.resolve()
        except Exception:
            instruction.dispose()
            raise

        self._subscriptions[key] = instruction.on_update(self._on_update.fire)
        self._instructions[key] = instruction
        trace("InstructionRegistry", f"added {key}")

        self._on_add.fire(instruction)
        self._on_update.fire()
        return self

    def remove(self, uri: PathLike) -> "InstructionAttachmentRegistry":
        """Dispose and remove the attachment for ``uri``. No-op if absent."""
        instruction = self._instructions.get(path_key(uri))
        if instruction is None:
            return self

        # Eviction happens in the dispose observer
        instruction.dispose()
        return self

    def _evict(self, key: str, instruction: InstructionAttachment) -> None:
        if self._instructions.get(key) is not instruction:
            return

        del self._instructions[key]
        self._subscriptions.pop(key)()
        trace("InstructionRegistry", f"removed {key}")

        self._on_update.fire()

    async def list_instruction_files(self) -> List[Path]:
        """List all prompt instruction files available to attach."""
        return await self._file_reader.list_files()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        # Silence events first; evictions below must not notify anyone
        self._on_update.dispose()
        self._on_add.dispose()

        for instruction in list(self._instructions.values()):
            instruction.dispose()
        logger.debug("Disposed instruction registry")
