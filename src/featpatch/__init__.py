"""Idempotent, marker-guarded feature patches for an existing application tree."""

from .errors import MissingTargetError, PatchError, StorageError
from .features import build_product_notes_plan
from .runner import PatchReport, PatchRunner, StepCheck, run_plan
from .schema import AppendEdit, CreateFileStep, EditFileStep, PatchPlan, ReplaceEdit, StepStatus
from .sequencer import StepOutcome, StepSequencer

__all__ = [
    "AppendEdit",
    "CreateFileStep",
    "EditFileStep",
    "MissingTargetError",
    "PatchError",
    "PatchPlan",
    "PatchReport",
    "PatchRunner",
    "ReplaceEdit",
    "StepCheck",
    "StepOutcome",
    "StepSequencer",
    "StepStatus",
    "StorageError",
    "build_product_notes_plan",
    "run_plan",
]
