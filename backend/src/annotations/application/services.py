import logging
from datetime import datetime

from annotations.domain.entities import Annotation, Commit, Snapshot
from annotations.domain.repository import SnapshotRepository
from annotations.domain.transform import (
    annotation_at_line,
    apply_commit,
    find_annotation,
    split_annotation,
)
from shared.exceptions import NotFoundError

logger = logging.getLogger(__name__)


async def load_snapshot(repo: SnapshotRepository, document_key: str) -> Snapshot:
    """Return the stored snapshot, or an empty one for unseen or unreadable documents."""
    snapshot = await repo.get(document_key)
    if snapshot is None:
        return Snapshot.empty()
    return snapshot


async def list_documents(repo: SnapshotRepository) -> list[str]:
    return await repo.list_keys()


async def record_commit(
    repo: SnapshotRepository,
    document_key: str,
    commit: Commit,
    now: datetime | None = None,
) -> Snapshot:
    """Apply one document-version transition and persist the resulting snapshot."""
    current = await load_snapshot(repo, document_key)
    updated = apply_commit(current, commit, now)

    updated = await repo.save(document_key, updated, expected_revision=current.revision)

    logger.info(
        "Document %s at version %d: %d edits, significant=%s, %d ranges",
        document_key,
        commit.target_version,
        len(commit.edits),
        commit.is_significant,
        len(updated.annotations),
    )
    return updated


async def annotation_at(repo: SnapshotRepository, document_key: str, line: int) -> Annotation:
    snapshot = await load_snapshot(repo, document_key)
    annotation = annotation_at_line(snapshot.annotations, line)
    if annotation is None:
        raise NotFoundError("Annotation", f"{document_key}:{line}")
    return annotation


async def remove_annotation(
    repo: SnapshotRepository,
    document_key: str,
    start_line: int,
    end_line: int,
    created_at: datetime,
) -> Snapshot:
    snapshot = await load_snapshot(repo, document_key)
    target = _require_annotation(snapshot, document_key, start_line, end_line, created_at)

    remaining = [a for a in snapshot.annotations if a is not target]
    updated = Snapshot(
        annotations=remaining,
        last_updated_at=snapshot.last_updated_at,
        document_version=snapshot.document_version,
    )
    updated = await repo.save(document_key, updated, expected_revision=snapshot.revision)

    logger.info("Removed annotation %d-%d from %s", start_line, end_line, document_key)
    return updated


async def remove_annotation_lines(
    repo: SnapshotRepository,
    document_key: str,
    start_line: int,
    end_line: int,
    created_at: datetime,
    remove_start: int,
    remove_end: int,
    now: datetime | None = None,
) -> Snapshot:
    """Remove a sub-range of one annotation, splitting it if needed."""
    snapshot = await load_snapshot(repo, document_key)
    target = _require_annotation(snapshot, document_key, start_line, end_line, created_at)

    fragments = split_annotation(target, remove_start, remove_end, now)
    remaining = [a for a in snapshot.annotations if a is not target] + fragments
    updated = Snapshot(
        annotations=sorted(remaining, key=lambda a: a.start_line),
        last_updated_at=snapshot.last_updated_at,
        document_version=snapshot.document_version,
    )
    updated = await repo.save(document_key, updated, expected_revision=snapshot.revision)

    logger.info(
        "Removed lines %d-%d from annotation %d-%d in %s",
        remove_start,
        remove_end,
        start_line,
        end_line,
        document_key,
    )
    return updated


async def clear_annotations(repo: SnapshotRepository, document_key: str) -> Snapshot:
    cleared = Snapshot.empty()
    cleared = await repo.save(document_key, cleared)
    logger.info("Cleared all annotations for %s", document_key)
    return cleared


async def forget_document(repo: SnapshotRepository, document_key: str) -> None:
    await repo.delete(document_key)
    logger.info("Deleted snapshot for %s", document_key)


def _require_annotation(
    snapshot: Snapshot,
    document_key: str,
    start_line: int,
    end_line: int,
    created_at: datetime,
) -> Annotation:
    annotation = find_annotation(snapshot.annotations, start_line, end_line, created_at)
    if annotation is None:
        raise NotFoundError("Annotation", f"{document_key}:{start_line}-{end_line}")
    return annotation
