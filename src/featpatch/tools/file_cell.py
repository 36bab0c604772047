"""Exclusive read/modify/write access to files inside a working root."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ..errors import PatchError, StorageError

LOGGER = logging.getLogger(__name__)


def _new_file_mode() -> int:
    """Permission bits a plain ``open()`` would give a new file under the current umask."""
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


@dataclass(slots=True)
class FileCell:
    """Load and atomically save text files relative to ``root``.

    Content is read and written without newline translation so a file that is
    loaded and saved back unchanged keeps its exact bytes.
    """

    root: Path
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        self.root = Path(self.root).resolve()

    def resolve(self, path: Path | str) -> Path:
        """Return the absolute location of ``path``, refusing escapes from the root."""
        target = (self.root / Path(path)).resolve()
        try:
            target.relative_to(self.root)
        except ValueError:
            raise PatchError(
                f"Patch target escapes working root: {path}",
                path=str(path),
                details={"root": self.root.as_posix()},
            ) from None
        return target

    def exists(self, path: Path | str) -> bool:
        return self.resolve(path).is_file()

    def load(self, path: Path | str) -> str | None:
        """Return the text stored at ``path`` or ``None`` when the file is absent."""
        target = self.resolve(path)
        try:
            with target.open("r", encoding=self.encoding, newline="") as handle:
                return handle.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as error:
            raise StorageError(
                f"Unable to read {path}: {error}",
                path=str(path),
            ) from error

    def save(self, path: Path | str, content: str) -> Path:
        """Replace the contents of ``path`` with ``content`` in a single rename."""
        target = self.resolve(path)
        temp_path: Path | None = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=self.encoding,
                newline="",
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            if target.exists():
                mode = target.stat().st_mode & 0o777
            else:
                mode = _new_file_mode()
            os.chmod(temp_path, mode)
            os.replace(temp_path, target)
        except OSError as error:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise StorageError(
                f"Unable to write {path}: {error}",
                path=str(path),
            ) from error
        LOGGER.debug("Wrote %d characters to %s", len(content), target)
        return target


__all__ = ["FileCell"]
