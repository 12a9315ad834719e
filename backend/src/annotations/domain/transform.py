"""Annotation algebra: map labeled line ranges through batches of edits.

Every function here is pure. Annotations are frozen, so shifting or splitting
always produces new values and callers' lists are never mutated.
"""

from dataclasses import replace
from datetime import datetime

from annotations.domain.entities import (
    Annotation,
    AnnotationKind,
    Commit,
    EditOperation,
    Snapshot,
    utcnow,
)
from shared.exceptions import InvalidRangeError


def transform_range(annotation: Annotation, edit: EditOperation) -> list[Annotation]:
    """Map one annotation through one edit into zero, one or two annotations.

    Any line inside ``[edit.start_line, edit.end_line]`` loses its annotation,
    even for zero-width insertions or same-text replacements.
    """
    delta = edit.line_delta

    if annotation.end_line < edit.start_line:
        return [annotation]

    if annotation.start_line > edit.end_line:
        return [
            replace(
                annotation,
                start_line=annotation.start_line + delta,
                end_line=annotation.end_line + delta,
            )
        ]

    fragments: list[Annotation] = []

    if annotation.start_line < edit.start_line:
        fragments.append(replace(annotation, end_line=edit.start_line - 1))

    if annotation.end_line > edit.end_line:
        after_start = edit.end_line + 1 + delta
        remaining = annotation.end_line - edit.end_line
        fragments.append(
            replace(annotation, start_line=after_start, end_line=after_start + remaining - 1)
        )

    return [f for f in fragments if f.start_line <= f.end_line]


def apply_batch(annotations: list[Annotation], edits: list[EditOperation]) -> list[Annotation]:
    """Apply every edit of one commit to the whole annotation set.

    Edits carry pre-batch coordinates, so they are applied from the highest
    start line down: a lower edit never sees lines shifted by a higher one.
    """
    result = list(annotations)
    for edit in sorted(edits, key=lambda e: e.start_line, reverse=True):
        result = [fragment for annotation in result for fragment in transform_range(annotation, edit)]
    return result


def merge_ranges(annotations: list[Annotation]) -> list[Annotation]:
    """Coalesce overlapping or directly adjacent annotations.

    A merged range keeps the newest ``created_at`` of its parts.
    """
    if len(annotations) <= 1:
        return list(annotations)

    ordered = sorted(annotations, key=lambda a: a.start_line)
    merged = [ordered[0]]

    for nxt in ordered[1:]:
        current = merged[-1]
        if nxt.start_line <= current.end_line + 1:
            merged[-1] = replace(
                current,
                end_line=max(current.end_line, nxt.end_line),
                created_at=max(current.created_at, nxt.created_at),
            )
        else:
            merged.append(nxt)

    return merged


def synthesize_annotations(
    edits: list[EditOperation], now: datetime | None = None
) -> list[Annotation]:
    """Create one annotation per edit of a significant commit, in edit order."""
    now = now or utcnow()
    return [
        Annotation(
            start_line=edit.start_line,
            end_line=edit.start_line + edit.added_line_count,
            created_at=now,
            kind=AnnotationKind.TOOL_GENERATED,
        )
        for edit in edits
    ]


def apply_commit(snapshot: Snapshot, commit: Commit, now: datetime | None = None) -> Snapshot:
    """Produce the next snapshot for a document from the current one and a commit."""
    now = now or utcnow()

    annotations = apply_batch(snapshot.annotations, commit.edits)
    if commit.is_significant:
        annotations.extend(synthesize_annotations(commit.edits, now))

    return Snapshot(
        annotations=merge_ranges(annotations),
        last_updated_at=now,
        document_version=commit.target_version,
    )


def find_annotation(
    annotations: list[Annotation], start_line: int, end_line: int, created_at: datetime
) -> Annotation | None:
    for annotation in annotations:
        if (
            annotation.start_line == start_line
            and annotation.end_line == end_line
            and annotation.created_at == created_at
        ):
            return annotation
    return None


def annotation_at_line(annotations: list[Annotation], line: int) -> Annotation | None:
    return next((a for a in annotations if a.contains(line)), None)


def split_annotation(
    annotation: Annotation,
    remove_start: int,
    remove_end: int,
    now: datetime | None = None,
) -> list[Annotation]:
    """Drop ``[remove_start, remove_end]`` from an annotation, keeping the rest.

    Surviving fragments are stamped with ``now``.
    """
    if remove_start > remove_end:
        raise InvalidRangeError(f"Inverted range {remove_start}-{remove_end}")
    if remove_start < annotation.start_line or remove_end > annotation.end_line:
        raise InvalidRangeError(
            f"Lines {remove_start}-{remove_end} are outside annotation "
            f"{annotation.start_line}-{annotation.end_line}"
        )

    now = now or utcnow()
    fragments: list[Annotation] = []
    if remove_start > annotation.start_line:
        fragments.append(replace(annotation, end_line=remove_start - 1, created_at=now))
    if remove_end < annotation.end_line:
        fragments.append(replace(annotation, start_line=remove_end + 1, created_at=now))
    return fragments
