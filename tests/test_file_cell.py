from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from featpatch.errors import PatchError, StorageError
from featpatch.tools.file_cell import FileCell


def test_load_returns_none_for_absent_file(tmp_path: Path) -> None:
    cell = FileCell(tmp_path)

    assert cell.load("missing.ts") is None
    assert not cell.exists("missing.ts")


def test_save_creates_parent_directories(tmp_path: Path) -> None:
    cell = FileCell(tmp_path)

    target = cell.save("backend/src/constants/products.ts", "export const X = 1;\n")

    assert target == tmp_path.resolve() / "backend" / "src" / "constants" / "products.ts"
    assert cell.load("backend/src/constants/products.ts") == "export const X = 1;\n"
    assert [path.name for path in target.parent.iterdir()] == ["products.ts"]


def test_save_replaces_existing_content(tmp_path: Path) -> None:
    (tmp_path / "styles.css").write_text("old\n", encoding="utf-8")
    cell = FileCell(tmp_path)

    cell.save("styles.css", "new\n")

    assert (tmp_path / "styles.css").read_text(encoding="utf-8") == "new\n"


def test_round_trip_preserves_crlf(tmp_path: Path) -> None:
    (tmp_path / "routes.ts").write_bytes(b"a;\r\nb;\r\n")
    cell = FileCell(tmp_path)

    content = cell.load("routes.ts")
    assert content == "a;\r\nb;\r\n"

    cell.save("routes.ts", content)
    assert (tmp_path / "routes.ts").read_bytes() == b"a;\r\nb;\r\n"


def test_paths_may_not_escape_root(tmp_path: Path) -> None:
    cell = FileCell(tmp_path / "app")

    with pytest.raises(PatchError):
        cell.save("../outside.txt", "nope\n")
    assert not (tmp_path / "outside.txt").exists()


def test_unwritable_location_raises_storage_error(tmp_path: Path) -> None:
    (tmp_path / "constants").write_text("not a directory\n", encoding="utf-8")
    cell = FileCell(tmp_path)

    with pytest.raises(StorageError) as excinfo:
        cell.save("constants/products.ts", "export const X = 1;\n")

    assert excinfo.value.details["path"] == "constants/products.ts"
    assert (tmp_path / "constants").read_text(encoding="utf-8") == "not a directory\n"


def test_unreadable_location_raises_storage_error(tmp_path: Path) -> None:
    (tmp_path / "constants").write_text("not a directory\n", encoding="utf-8")
    cell = FileCell(tmp_path)

    with pytest.raises(StorageError):
        cell.load("constants/products.ts")


@pytest.fixture()
def umask_022():
    previous = os.umask(0o022)
    yield
    os.umask(previous)


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_new_file_gets_umask_default_mode(tmp_path: Path, umask_022) -> None:
    target = FileCell(tmp_path).save("frontend/src/components/NotesInlineEditor.tsx", "export {};\n")

    assert stat.S_IMODE(target.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_existing_file_keeps_its_mode(tmp_path: Path, umask_022) -> None:
    script = tmp_path / "migrate.sh"
    script.write_text("#!/bin/sh\n", encoding="utf-8")
    script.chmod(0o750)

    FileCell(tmp_path).save("migrate.sh", "#!/bin/sh\nexit 0\n")

    assert stat.S_IMODE(script.stat().st_mode) == 0o750
