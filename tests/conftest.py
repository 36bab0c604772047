from __future__ import annotations

import shutil
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
FIXTURE_APP = Path(__file__).resolve().parent / "fixtures" / "app"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from featpatch.features import build_product_notes_plan  # noqa: E402
from featpatch.schema import PatchPlan  # noqa: E402


def snapshot_tree(root: Path) -> dict[str, bytes]:
    """Map every file below ``root`` to its bytes."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture()
def app_tree(tmp_path: Path) -> Path:
    """Fresh copy of the unpatched application tree."""
    target = tmp_path / "app"
    shutil.copytree(FIXTURE_APP, target)
    return target


@pytest.fixture()
def notes_plan() -> PatchPlan:
    return build_product_notes_plan()
