"""Context attachments of a chat or edit session.

AttachmentStore keeps the attachments of a chat session; the
AdmissionController used by edit sessions additionally caps how many
files may be attached at once and queues the rest.
"""

from .admission import AdmissionController, FileLimitSource
from .models import AttachmentEntry, FileLocation, FileRange, as_variable_entry
from .store import AttachmentStore

__all__ = [
    'AdmissionController',
    'AttachmentEntry',
    'AttachmentStore',
    'FileLimitSource',
    'FileLocation',
    'FileRange',
    'as_variable_entry',
]
