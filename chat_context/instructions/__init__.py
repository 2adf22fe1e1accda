"""Prompt instruction attachments.

Instruction files are prompt files attached to a session as a whole tree
of references. This package holds the attachment wrapper, the per-session
registry, and the discovery of instruction files in the workspace.
"""

from .attachment import InstructionAttachment, ReferenceFactory
from .file_reader import INSTRUCTIONS_FILE_EXTENSION, InstructionFileReader
from .registry import InstructionAttachmentRegistry

__all__ = [
    'INSTRUCTIONS_FILE_EXTENSION',
    'InstructionAttachment',
    'InstructionAttachmentRegistry',
    'InstructionFileReader',
    'ReferenceFactory',
]
