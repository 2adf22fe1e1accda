"""Prompt reference trees and their aggregated error status.

A prompt reference is a file plus the files it references, transitively.
This package provides the default file-backed resolver and the
aggregation of per-node error conditions into one displayable status.
"""

from .aggregator import ErrorStatus, aggregate_error_conditions, collect_error_conditions
from .errors import (
    FileOpenFailed,
    NonPromptSnippetFile,
    PromptReferenceError,
    RecursiveReference,
)
from .reference import (
    MAX_REFERENCE_DEPTH,
    PROMPT_SNIPPET_FILE_EXTENSION,
    FilePromptReference,
    PromptReference,
)

__all__ = [
    'ErrorStatus',
    'FileOpenFailed',
    'FilePromptReference',
    'MAX_REFERENCE_DEPTH',
    'NonPromptSnippetFile',
    'PROMPT_SNIPPET_FILE_EXTENSION',
    'PromptReference',
    'PromptReferenceError',
    'RecursiveReference',
    'aggregate_error_conditions',
    'collect_error_conditions',
]
