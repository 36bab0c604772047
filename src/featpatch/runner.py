"""Entry point that applies a patch plan to a working tree and reports the result."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import StorageError
from .schema import CreateFileStep, PatchPlan, StepStatus
from .sequencer import StepOutcome, StepSequencer
from .tools.file_cell import FileCell
from .tools.telemetry import RunTelemetry

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PatchReport:
    """Per-step outcomes of one run, in plan order."""

    plan: str
    root: Path
    outcomes: list[StepOutcome] = field(default_factory=list)
    strict: bool = False

    @property
    def ok(self) -> bool:
        """``True`` unless a step target was missing (or, in strict mode, any step was skipped)."""
        if self.strict:
            return not self.skipped
        return not any(outcome.status is StepStatus.MISSING_FILE for outcome in self.outcomes)

    @property
    def skipped(self) -> list[StepOutcome]:
        return [outcome for outcome in self.outcomes if outcome.skipped]

    @property
    def changed_paths(self) -> list[str]:
        return [outcome.path for outcome in self.outcomes if outcome.changed]

    @property
    def failed_step(self) -> str | None:
        for outcome in self.outcomes:
            if outcome.status is StepStatus.MISSING_FILE:
                return outcome.step_id
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": self.plan,
            "root": self.root.as_posix(),
            "ok": self.ok,
            "strict": self.strict,
            "changed": self.changed_paths,
            "skipped": [outcome.step_id for outcome in self.skipped],
            "steps": [outcome.to_dict() for outcome in self.outcomes],
        }

    def write_json(self, path: Path | str) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        return target


@dataclass(slots=True)
class StepCheck:
    """Read-only view of whether a step's change is present in the tree."""

    step_id: str
    path: str
    present: bool
    exists: bool

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step_id, "path": self.path, "present": self.present, "exists": self.exists}


class PatchRunner:
    """Apply ``plan`` to the tree rooted at ``root``.

    Every step is idempotent, so ``run`` may be invoked any number of times on
    the same tree. Runs are not safe to execute concurrently.
    """

    def __init__(self, root: Path | str, plan: PatchPlan, *, strict: bool = False) -> None:
        self.root = Path(root).resolve()
        self.plan = plan
        self.strict = strict
        self.cell = FileCell(self.root)

    def run(self) -> PatchReport:
        """Execute every step once, in order.

        Raises ``StorageError`` at the first step whose file cannot be written;
        earlier steps are not rolled back.
        """
        if not self.root.is_dir():
            raise StorageError(f"Working root is not a directory: {self.root}", details={"root": str(self.root)})

        LOGGER.info("Applying plan %s (%d steps) to %s", self.plan.name, len(self.plan.steps), self.root)
        report = PatchReport(plan=self.plan.name, root=self.root, strict=self.strict)
        telemetry = RunTelemetry(self.plan.name, self.root)
        sequencer = StepSequencer(self.cell, self.plan.steps, telemetry=telemetry)
        try:
            for outcome in sequencer:
                report.outcomes.append(outcome)
        except StorageError as error:
            telemetry.emit("run_failed", completed=len(report.outcomes), error=str(error))
            raise

        telemetry.emit(
            "run_completed",
            ok=report.ok,
            changed=report.changed_paths,
            skipped=[outcome.step_id for outcome in report.skipped],
        )
        return report

    def check(self) -> list[StepCheck]:
        """Report, per step, whether its change is already present without writing anything."""
        checks: list[StepCheck] = []
        for step in self.plan.steps:
            content = self.cell.load(step.path)
            if content is None:
                checks.append(StepCheck(step.id, step.path, present=False, exists=False))
                continue
            if isinstance(step, CreateFileStep):
                present = content == step.content
            else:
                present = all(marker in content for marker in step.markers())
            checks.append(StepCheck(step.id, step.path, present=present, exists=True))
        return checks


def run_plan(root: Path | str, plan: PatchPlan, *, strict: bool = False) -> PatchReport:
    """Convenience wrapper around ``PatchRunner(root, plan).run()``."""
    return PatchRunner(root, plan, strict=strict).run()


__all__ = ["PatchReport", "PatchRunner", "StepCheck", "run_plan"]
