"""Marker-guarded text replacement primitives."""

from __future__ import annotations

from ..schema import AppendEdit, EditStatus, ReplaceEdit


def guarded_replace(content: str, guard_marker: str | None, anchor: str, replacement: str) -> str:
    """Replace the first ``anchor`` in ``content`` unless ``guard_marker`` is already present.

    The guard is always checked before the anchor so a re-run never inserts twice,
    even when the anchor text survives inside the patched content. A missing anchor
    returns ``content`` untouched.
    """
    if guard_marker and guard_marker in content:
        return content
    if not anchor or anchor not in content:
        return content
    return content.replace(anchor, replacement, 1)


def guarded_append(content: str, guard_marker: str, text: str) -> str:
    """Append ``text`` to ``content`` unless ``guard_marker`` is already present."""
    if guard_marker and guard_marker in content:
        return content
    return content + text


def apply_edit(content: str, edit: ReplaceEdit | AppendEdit) -> tuple[str, EditStatus]:
    """Apply ``edit`` to ``content`` and classify what happened."""
    if edit.guard and edit.guard in content:
        return content, EditStatus.ALREADY_APPLIED
    if isinstance(edit, AppendEdit):
        return guarded_append(content, edit.guard, edit.text), EditStatus.APPLIED
    if edit.anchor not in content:
        return content, EditStatus.ANCHOR_MISSING
    return guarded_replace(content, edit.guard, edit.anchor, edit.replacement), EditStatus.APPLIED


__all__ = ["apply_edit", "guarded_append", "guarded_replace"]
