"""Boundary between editor change events and the 1-based edit model."""

import re
from dataclasses import dataclass

from annotations.domain.entities import EditOperation

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class ChangeEvent:
    """A raw editor content change with 0-based line numbers."""

    start_line: int
    start_character: int
    end_line: int
    end_character: int
    text: str
    range_length: int


def to_edit_operation(change: ChangeEvent) -> EditOperation:
    added_lines = change.text.count("\n") if change.text else 0
    deleted_lines = change.end_line - change.start_line if change.range_length > 0 else 0

    return EditOperation(
        start_line=change.start_line + 1,
        end_line=change.end_line + 1,
        start_char=change.start_character,
        end_char=change.end_character,
        inserted_text=change.text,
        deleted_char_count=change.range_length,
        added_line_count=added_lines,
        deleted_line_count=deleted_lines,
    )


def extract_edits(changes: list[ChangeEvent]) -> list[EditOperation]:
    return [to_edit_operation(c) for c in changes]


def key_for_path(relative_path: str) -> str:
    """Derive a storage key from a workspace-relative document path."""
    return _UNSAFE_KEY_CHARS.sub("_", relative_path)
