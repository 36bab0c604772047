"""Exception types raised while applying feature patches."""

from __future__ import annotations

from typing import Any, Mapping


class PatchError(RuntimeError):
    """Raised when a plan, step or target file cannot be processed.

    ``step`` and ``path`` identify where the run stopped and are folded into
    ``details`` so reports and telemetry can carry them as-is.
    """

    def __init__(
        self,
        message: str,
        *,
        step: str | None = None,
        path: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.step = step
        self.path = path
        self.details: dict[str, Any] = dict(details or {})
        if step is not None:
            self.details.setdefault("step", step)
        if path is not None:
            self.details.setdefault("path", path)


class MissingTargetError(PatchError):
    """An edit step's target file does not exist; only that step fails."""


class StorageError(PatchError):
    """The working tree cannot be read or written; the run stops here."""


__all__ = ["MissingTargetError", "PatchError", "StorageError"]
