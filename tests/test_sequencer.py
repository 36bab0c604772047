from __future__ import annotations

from pathlib import Path

import pytest

from featpatch.errors import StorageError
from featpatch.schema import CreateFileStep, EditFileStep, EditStatus, ReplaceEdit, StepStatus
from featpatch.sequencer import StepSequencer
from featpatch.tools.file_cell import FileCell


def _edit_step(**overrides) -> EditFileStep:
    payload = {
        "id": "routes",
        "path": "routes.ts",
        "edits": [
            ReplaceEdit(
                anchor='router.get("/:id", show);\n',
                replacement='router.get("/:id", show);\nrouter.patch("/:id/notes", notes);\n',
                guard='router.patch("/:id/notes"',
            )
        ],
    }
    payload.update(overrides)
    return EditFileStep(**payload)


def test_create_step_writes_absent_file(tmp_path: Path) -> None:
    step = CreateFileStep(id="constants", path="src/constants.ts", content="export const N = 1;\n")

    outcome = StepSequencer(FileCell(tmp_path), [step]).run_step(step)

    assert outcome.status is StepStatus.CREATED
    assert (tmp_path / "src" / "constants.ts").read_text(encoding="utf-8") == "export const N = 1;\n"


def test_create_step_leaves_existing_file(tmp_path: Path) -> None:
    (tmp_path / "constants.ts").write_text("export const N = 2;\n", encoding="utf-8")
    step = CreateFileStep(id="constants", path="constants.ts", content="export const N = 1;\n")
    sequencer = StepSequencer(FileCell(tmp_path), [step])

    outcome = sequencer.run_step(step)

    assert outcome.status is StepStatus.EXISTS
    assert outcome.skipped
    assert not outcome.changed
    assert (tmp_path / "constants.ts").read_text(encoding="utf-8") == "export const N = 2;\n"


def test_create_step_matching_content_is_already_applied(tmp_path: Path) -> None:
    (tmp_path / "constants.ts").write_text("export const N = 1;\n", encoding="utf-8")
    step = CreateFileStep(id="constants", path="constants.ts", content="export const N = 1;\n")

    assert StepSequencer(FileCell(tmp_path), [step]).run_step(step).status is StepStatus.ALREADY_APPLIED


def test_create_step_overwrite(tmp_path: Path) -> None:
    (tmp_path / "constants.ts").write_text("export const N = 2;\n", encoding="utf-8")
    step = CreateFileStep(id="constants", path="constants.ts", content="export const N = 1;\n", overwrite=True)

    assert StepSequencer(FileCell(tmp_path), [step]).run_step(step).status is StepStatus.APPLIED
    assert (tmp_path / "constants.ts").read_text(encoding="utf-8") == "export const N = 1;\n"


def test_edit_step_applies_then_reports_already_applied(tmp_path: Path) -> None:
    (tmp_path / "routes.ts").write_text('router.get("/:id", show);\n\nexport default router;\n', encoding="utf-8")
    step = _edit_step()
    sequencer = StepSequencer(FileCell(tmp_path), [step])

    first = sequencer.run_step(step)
    patched = (tmp_path / "routes.ts").read_bytes()
    second = sequencer.run_step(step)

    assert first.status is StepStatus.APPLIED
    assert first.edits == (EditStatus.APPLIED,)
    assert second.status is StepStatus.ALREADY_APPLIED
    assert (tmp_path / "routes.ts").read_bytes() == patched
    assert patched.count(b"router.patch") == 1


def test_edit_step_leaves_file_whole_when_any_required_anchor_is_missing(tmp_path: Path) -> None:
    original = "import a;\nbody();\n"
    (tmp_path / "controller.ts").write_text(original, encoding="utf-8")
    step = EditFileStep(
        id="controller",
        path="controller.ts",
        edits=[
            ReplaceEdit(anchor="import a;\n", replacement="import a;\nimport b;\n", guard="import b;"),
            ReplaceEdit(anchor="handler();\n", replacement="handler();\nnotes();\n", guard="notes();"),
        ],
    )

    outcome = StepSequencer(FileCell(tmp_path), [step]).run_step(step)

    assert outcome.status is StepStatus.ANCHOR_MISSING
    assert outcome.edits == (EditStatus.APPLIED, EditStatus.ANCHOR_MISSING)
    assert (tmp_path / "controller.ts").read_text(encoding="utf-8") == original


def test_optional_edit_does_not_block_step(tmp_path: Path) -> None:
    (tmp_path / "page.tsx").write_text("<th>Tags</th>\n", encoding="utf-8")
    step = EditFileStep(
        id="page",
        path="page.tsx",
        guard="<th>Notes</th>",
        edits=[
            ReplaceEdit(anchor="import { tagsApi }", replacement="", optional=True),
            ReplaceEdit(anchor="<th>Tags</th>", replacement="<th>Notes</th>"),
        ],
    )
    sequencer = StepSequencer(FileCell(tmp_path), [step])

    assert sequencer.run_step(step).status is StepStatus.APPLIED
    assert (tmp_path / "page.tsx").read_text(encoding="utf-8") == "<th>Notes</th>\n"
    assert sequencer.run_step(step).status is StepStatus.ALREADY_APPLIED


def test_missing_target_is_recorded_and_sequence_continues(tmp_path: Path) -> None:
    (tmp_path / "routes.ts").write_text('router.get("/:id", show);\n', encoding="utf-8")
    missing = _edit_step(id="schema", path="schema.prisma")
    present = _edit_step()

    outcomes = StepSequencer(FileCell(tmp_path), [missing, present]).execute()

    assert [outcome.status for outcome in outcomes] == [StepStatus.MISSING_FILE, StepStatus.APPLIED]
    assert "schema.prisma" in (outcomes[0].error or "")
    assert not (tmp_path / "schema.prisma").exists()


def test_storage_failure_stops_the_sequence(tmp_path: Path) -> None:
    (tmp_path / "constants").write_text("blocking file\n", encoding="utf-8")
    first = CreateFileStep(id="migration", path="migration.sql", content="SELECT 1;\n")
    broken = CreateFileStep(id="constants", path="constants/products.ts", content="x\n")
    last = CreateFileStep(id="component", path="component.tsx", content="y\n")
    sequencer = StepSequencer(FileCell(tmp_path), [first, broken, last])

    with pytest.raises(StorageError):
        sequencer.execute()

    assert [outcome.step_id for outcome in sequencer.outcomes] == ["migration"]
    assert (tmp_path / "migration.sql").exists()
    assert not (tmp_path / "component.tsx").exists()
