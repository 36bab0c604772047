"""File access and text primitives used by the patch sequencer."""

from .file_cell import FileCell
from .guarded import apply_edit, guarded_append, guarded_replace
from .telemetry import RunTelemetry

__all__ = [
    "FileCell",
    "RunTelemetry",
    "apply_edit",
    "guarded_append",
    "guarded_replace",
]
