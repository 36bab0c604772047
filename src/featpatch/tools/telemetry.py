"""JSON events describing a patch run, one line per step."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

TELEMETRY_LOGGER = logging.getLogger("featpatch.telemetry")


def _jsonable(value: Any) -> Any:
    """``json.dumps`` fallback for paths, statuses and step outcomes."""
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, Enum):
        return value.value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (set, frozenset)):
        return sorted(str(item) for item in value)
    return str(value)


@dataclass(slots=True)
class RunTelemetry:
    """Event emitter bound to one plan and working root.

    Every event carries ``plan`` and ``root`` so lines from interleaved runs in
    a shared log can be told apart.
    """

    plan: str
    root: Path | None = None

    def emit(self, event: str, **fields: Any) -> None:
        payload: dict[str, Any] = {
            "event": event,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "plan": self.plan,
            "root": self.root,
        }
        payload.update(fields)
        TELEMETRY_LOGGER.info(json.dumps(payload, default=_jsonable, separators=(",", ":"), ensure_ascii=True))


__all__ = ["TELEMETRY_LOGGER", "RunTelemetry"]
