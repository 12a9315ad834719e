from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnnotationKind(StrEnum):
    TOOL_GENERATED = "ai-generated"


@dataclass(frozen=True)
class Annotation:
    """A 1-based, inclusive line range marking tool-authored content."""

    start_line: int
    end_line: int
    created_at: datetime
    kind: AnnotationKind = AnnotationKind.TOOL_GENERATED

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(frozen=True)
class EditOperation:
    """Delete ``[start_line, end_line]`` then insert text at the deletion start.

    Line numbers are 1-based and refer to the document before the edit.
    """

    start_line: int
    end_line: int
    start_char: int = 0
    end_char: int = 0
    inserted_text: str = ""
    deleted_char_count: int = 0
    added_line_count: int = 0
    deleted_line_count: int = 0

    @property
    def line_delta(self) -> int:
        return self.added_line_count - self.deleted_line_count


@dataclass(frozen=True)
class Commit:
    target_version: int
    is_significant: bool
    edits: list[EditOperation] = field(default_factory=list)


@dataclass(frozen=True)
class Snapshot:
    annotations: list[Annotation]
    last_updated_at: datetime
    document_version: int = 0
    # Storage write counter used for optimistic locking; bumped on every save.
    revision: int = field(default=0, compare=False)

    @classmethod
    def empty(cls, now: datetime | None = None) -> "Snapshot":
        return cls(annotations=[], last_updated_at=now or utcnow(), document_version=0)
