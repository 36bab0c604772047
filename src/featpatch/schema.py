"""Typed descriptors for patch plans, their steps and their edits."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import PatchError


class RecordModel(BaseModel):
    """Base Pydantic model with strict, immutable field handling."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class EditStatus(str, Enum):
    """Outcome of a single guarded edit."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    ANCHOR_MISSING = "anchor_missing"


class StepStatus(str, Enum):
    """Outcome of a plan step."""

    CREATED = "created"
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    EXISTS = "exists"
    ANCHOR_MISSING = "anchor_missing"
    MISSING_FILE = "missing_file"

    @property
    def changed(self) -> bool:
        return self in {StepStatus.CREATED, StepStatus.APPLIED}

    @property
    def skipped(self) -> bool:
        return self in {StepStatus.ANCHOR_MISSING, StepStatus.EXISTS, StepStatus.MISSING_FILE}


class ReplaceEdit(RecordModel):
    """Replace the first occurrence of ``anchor`` unless ``guard`` is present.

    An ``optional`` edit whose anchor is gone does not block the rest of its step.
    """

    action: Literal["replace"] = "replace"
    anchor: str = Field(min_length=1)
    replacement: str
    guard: Optional[str] = None
    optional: bool = False
    note: str = ""

    @field_validator("guard")
    @classmethod
    def _blank_guard_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class AppendEdit(RecordModel):
    """Append ``text`` to the end of the file unless ``guard`` is present."""

    action: Literal["append"] = "append"
    text: str = Field(min_length=1)
    guard: str = Field(min_length=1)
    note: str = ""


FileEdit = Annotated[Union[ReplaceEdit, AppendEdit], Field(discriminator="action")]


class CreateFileStep(RecordModel):
    """Create ``path`` with fixed ``content``.

    A file that already holds ``content`` is left alone. A file with other
    content is rewritten when ``overwrite`` is set and reported as ``exists``
    (a skipped step) otherwise.
    """

    kind: Literal["create"] = "create"
    id: str = Field(min_length=1)
    path: str = Field(min_length=1)
    content: str
    overwrite: bool = False
    description: str = ""

    def markers(self) -> tuple[str, ...]:
        return ()


class EditFileStep(RecordModel):
    """Mutate an existing file through an ordered list of guarded edits."""

    kind: Literal["edit"] = "edit"
    id: str = Field(min_length=1)
    path: str = Field(min_length=1)
    guard: Optional[str] = None
    edits: List[FileEdit] = Field(min_length=1)
    description: str = ""

    def markers(self) -> tuple[str, ...]:
        """Substrings whose joint presence means the step has landed."""
        if self.guard:
            return (self.guard,)
        return tuple(edit.guard for edit in self.edits if edit.guard)


PatchStep = Annotated[Union[CreateFileStep, EditFileStep], Field(discriminator="kind")]


class PatchPlan(RecordModel):
    """Ordered, stateless list of steps applied to one working tree."""

    name: str = Field(min_length=1)
    description: str = ""
    steps: List[PatchStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_step_ids(self) -> "PatchPlan":
        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f"Duplicate step id: {step.id}")
            seen.add(step.id)
        return self

    def step(self, step_id: str) -> CreateFileStep | EditFileStep:
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(step_id)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "PatchPlan":
        """Load and validate a plan document stored as YAML."""
        plan_path = Path(path)
        try:
            with plan_path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except FileNotFoundError as error:
            raise PatchError(f"Plan file not found: {plan_path}") from error
        except yaml.YAMLError as error:
            raise PatchError(f"Failed to parse plan {plan_path}: {error}") from error
        if not isinstance(data, dict):
            raise PatchError("Plan must be a mapping at the top level.")
        return cls.model_validate(data)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False, allow_unicode=True)


__all__ = [
    "AppendEdit",
    "CreateFileStep",
    "EditFileStep",
    "EditStatus",
    "FileEdit",
    "PatchPlan",
    "PatchStep",
    "RecordModel",
    "ReplaceEdit",
    "StepStatus",
]
