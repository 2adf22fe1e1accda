"""Lifecycle trace file for attachments and reference trees.

Host UIs usually swallow regular logging output, so attachment lifecycle
steps (instruction added or removed, reference read failures, admission
and re-admission of files) are also appended to a plain trace file:

    [14:02:11.042] [AdmissionController] excluded ['file:///w/c.py']

The file is named by CHAT_CONTEXT_TRACE_LOG. Setting it to an empty
string turns tracing off; leaving it unset writes to
``chat_context_trace.log`` in the temp directory.
"""

import os
import sys
import tempfile
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional, Set

TRACE_ENV_VAR = "CHAT_CONTEXT_TRACE_LOG"
DEFAULT_TRACE_FILENAME = "chat_context_trace.log"

# Parent folders created so far
_created_parents: Set[Path] = set()


def resolve_trace_path(
    env_var: str = TRACE_ENV_VAR,
    default_filename: str = DEFAULT_TRACE_FILENAME,
) -> Optional[str]:
    """Trace file named by ``env_var``, None when tracing is turned off."""
    value = os.environ.get(env_var)
    if value is None:
        return os.path.join(tempfile.gettempdir(), default_filename)
    return value or None


def _format_line(component: str, msg: str) -> str:
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    return f"[{timestamp}] [{component}] {msg}\n"


def trace_write(
    component: str,
    msg: str,
    trace_path: Optional[str],
    *,
    include_traceback: bool = False,
) -> None:
    """Append one trace line to ``trace_path``.

    Args:
        component: Name shown in brackets, e.g. "InstructionRegistry".
        msg: Message text.
        trace_path: Target file; None does nothing.
        include_traceback: Also write the exception being handled, if any.

    I/O failures are ignored: a broken trace file must not change the
    outcome of an attachment operation.
    """
    if not trace_path:
        return

    lines = [_format_line(component, msg)]
    if include_traceback and sys.exc_info()[0] is not None:
        lines.append(traceback.format_exc())

    path = Path(trace_path)
    try:
        parent = path.absolute().parent
        if parent not in _created_parents:
            parent.mkdir(parents=True, exist_ok=True)
            _created_parents.add(parent)
        with path.open("a", encoding="utf-8") as f:
            f.writelines(lines)
    except Exception:
        pass


def trace(component: str, msg: str, *, include_traceback: bool = False) -> None:
    """Append a line to the file named by CHAT_CONTEXT_TRACE_LOG."""
    trace_write(component, msg, resolve_trace_path(), include_traceback=include_traceback)
