"""Execute plan steps in order against a working tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from .errors import MissingTargetError
from .schema import CreateFileStep, EditFileStep, EditStatus, StepStatus
from .tools.file_cell import FileCell
from .tools.guarded import apply_edit
from .tools.telemetry import RunTelemetry

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class StepOutcome:
    """Result of running one plan step."""

    step_id: str
    path: str
    status: StepStatus
    edits: tuple[EditStatus, ...] = ()
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.status.changed

    @property
    def skipped(self) -> bool:
        return self.status.skipped

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step_id,
            "path": self.path,
            "status": self.status.value,
            "edits": [status.value for status in self.edits],
            "error": self.error,
        }


@dataclass(slots=True)
class StepSequencer:
    """Run ``steps`` one after another; no step reads another step's result.

    A missing edit target is recorded and the sequence moves on. Storage
    failures propagate and stop the sequence at the failing step.
    """

    cell: FileCell
    steps: Sequence[CreateFileStep | EditFileStep]
    outcomes: list[StepOutcome] = field(default_factory=list)
    telemetry: RunTelemetry = field(default_factory=lambda: RunTelemetry(plan=""))

    def __iter__(self) -> Iterator[StepOutcome]:
        for step in self.steps:
            outcome = self.run_step(step)
            self.outcomes.append(outcome)
            yield outcome

    def execute(self) -> list[StepOutcome]:
        return list(self)

    def run_step(self, step: CreateFileStep | EditFileStep) -> StepOutcome:
        try:
            if isinstance(step, CreateFileStep):
                outcome = self._create(step)
            else:
                outcome = self._edit(step)
        except MissingTargetError as error:
            LOGGER.error("Step %s skipped: %s", step.id, error)
            self.telemetry.emit("step_failed", step=step.id, path=step.path, reason="missing_file")
            return StepOutcome(step.id, step.path, StepStatus.MISSING_FILE, error=str(error))

        if outcome.skipped:
            LOGGER.warning("Step %s left %s unchanged: %s", step.id, step.path, outcome.status.value)
            self.telemetry.emit("step_skipped", **outcome.to_dict())
        else:
            LOGGER.info("Step %s -> %s (%s)", step.id, outcome.status.value, step.path)
            self.telemetry.emit("step_applied", **outcome.to_dict())
        return outcome

    def _create(self, step: CreateFileStep) -> StepOutcome:
        current = self.cell.load(step.path)
        if current is None:
            self.cell.save(step.path, step.content)
            return StepOutcome(step.id, step.path, StepStatus.CREATED)
        if current == step.content:
            return StepOutcome(step.id, step.path, StepStatus.ALREADY_APPLIED)
        if not step.overwrite:
            return StepOutcome(step.id, step.path, StepStatus.EXISTS)
        self.cell.save(step.path, step.content)
        return StepOutcome(step.id, step.path, StepStatus.APPLIED)

    def _edit(self, step: EditFileStep) -> StepOutcome:
        original = self.cell.load(step.path)
        if original is None:
            raise MissingTargetError(
                f"Target file not found: {step.path}",
                step=step.id,
                path=step.path,
            )
        if step.guard and step.guard in original:
            return StepOutcome(step.id, step.path, StepStatus.ALREADY_APPLIED)

        content = original
        statuses: list[EditStatus] = []
        blocked = False
        for edit in step.edits:
            content, status = apply_edit(content, edit)
            statuses.append(status)
            if status is EditStatus.ANCHOR_MISSING and not getattr(edit, "optional", False):
                blocked = True

        # A file is patched whole or not at all.
        if blocked:
            return StepOutcome(step.id, step.path, StepStatus.ANCHOR_MISSING, edits=tuple(statuses))
        if content == original:
            return StepOutcome(step.id, step.path, StepStatus.ALREADY_APPLIED, edits=tuple(statuses))
        self.cell.save(step.path, content)
        return StepOutcome(step.id, step.path, StepStatus.APPLIED, edits=tuple(statuses))


__all__ = ["StepOutcome", "StepSequencer"]
