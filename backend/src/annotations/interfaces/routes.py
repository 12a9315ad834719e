import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from annotations.application.services import (
    annotation_at,
    clear_annotations,
    forget_document,
    list_documents,
    load_snapshot,
    record_commit,
    remove_annotation,
    remove_annotation_lines,
)
from annotations.application.significance import SignificanceGate
from annotations.domain.entities import Annotation, Commit, Snapshot
from annotations.infrastructure.edit_adapter import ChangeEvent, extract_edits, key_for_path
from annotations.infrastructure.redis_pubsub import publish_snapshot
from annotations.infrastructure.snapshot_repository import DbSnapshotRepository
from annotations.interfaces.schemas import (
    AnnotationResponse,
    CommandRequest,
    CommitRequest,
    DocumentKeyResponse,
    RemoveAnnotationRequest,
    RemoveLinesRequest,
    ResolveKeyRequest,
    SignificanceStatusResponse,
    SnapshotResponse,
    SuspendRequest,
    UserActionRequest,
)
from shared.dependencies import get_db, get_redis, get_significance_gate

logger = logging.getLogger(__name__)

DOCUMENT_KEY_PATTERN = r"^[A-Za-z0-9._-]+$"

router = APIRouter(prefix="/api/snapshots", tags=["snapshots"])
significance_router = APIRouter(prefix="/api/significance", tags=["significance"])

DocumentKey = Annotated[str, Path(pattern=DOCUMENT_KEY_PATTERN, max_length=1024)]


def _annotation_response(annotation: Annotation) -> AnnotationResponse:
    return AnnotationResponse(
        start_line=annotation.start_line,
        end_line=annotation.end_line,
        created_at=annotation.created_at,
        kind=annotation.kind,
    )


def _snapshot_response(document_key: str, snapshot: Snapshot) -> SnapshotResponse:
    return SnapshotResponse(
        document_key=document_key,
        annotations=[_annotation_response(a) for a in snapshot.annotations],
        last_updated_at=snapshot.last_updated_at,
        document_version=snapshot.document_version,
    )


async def _publish(redis: Redis, document_key: str, snapshot: Snapshot) -> None:
    try:
        await publish_snapshot(redis, document_key, snapshot)
    except RedisError:
        logger.warning("Could not publish snapshot for %s", document_key, exc_info=True)


@router.get("/", response_model=list[str])
async def list_all(db: AsyncSession = Depends(get_db)):
    repo = DbSnapshotRepository(db)
    return await list_documents(repo)


@router.post("/resolve", response_model=DocumentKeyResponse)
async def resolve_key(body: ResolveKeyRequest):
    return DocumentKeyResponse(path=body.path, document_key=key_for_path(body.path))


@router.get("/{document_key}", response_model=SnapshotResponse)
async def get_one(
    document_key: DocumentKey,
    db: AsyncSession = Depends(get_db),
):
    repo = DbSnapshotRepository(db)
    return _snapshot_response(document_key, await load_snapshot(repo, document_key))


@router.post("/{document_key}/commits", response_model=SnapshotResponse)
async def commit(
    body: CommitRequest,
    document_key: DocumentKey,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
    gate: SignificanceGate = Depends(get_significance_gate),
):
    edits = extract_edits([ChangeEvent(**change.model_dump()) for change in body.changes])

    is_significant = body.is_significant
    if is_significant is None:
        is_significant = gate.is_significant(edits, reason=body.reason)

    repo = DbSnapshotRepository(db)
    snapshot = await record_commit(
        repo,
        document_key,
        Commit(target_version=body.document_version, is_significant=is_significant, edits=edits),
    )
    await _publish(redis, document_key, snapshot)
    return _snapshot_response(document_key, snapshot)


@router.get("/{document_key}/annotations/{line}", response_model=AnnotationResponse)
async def get_annotation(
    document_key: DocumentKey,
    line: Annotated[int, Path(ge=1)],
    db: AsyncSession = Depends(get_db),
):
    repo = DbSnapshotRepository(db)
    return _annotation_response(await annotation_at(repo, document_key, line))


@router.post("/{document_key}/annotations/remove", response_model=SnapshotResponse)
async def remove(
    body: RemoveAnnotationRequest,
    document_key: DocumentKey,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    repo = DbSnapshotRepository(db)
    snapshot = await remove_annotation(
        repo,
        document_key,
        start_line=body.start_line,
        end_line=body.end_line,
        created_at=body.created_at,
    )
    await _publish(redis, document_key, snapshot)
    return _snapshot_response(document_key, snapshot)


@router.post("/{document_key}/annotations/remove-lines", response_model=SnapshotResponse)
async def remove_lines(
    body: RemoveLinesRequest,
    document_key: DocumentKey,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    repo = DbSnapshotRepository(db)
    snapshot = await remove_annotation_lines(
        repo,
        document_key,
        start_line=body.start_line,
        end_line=body.end_line,
        created_at=body.created_at,
        remove_start=body.remove_start_line,
        remove_end=body.remove_end_line,
    )
    await _publish(redis, document_key, snapshot)
    return _snapshot_response(document_key, snapshot)


@router.post("/{document_key}/clear", response_model=SnapshotResponse)
async def clear(
    document_key: DocumentKey,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    repo = DbSnapshotRepository(db)
    snapshot = await clear_annotations(repo, document_key)
    await _publish(redis, document_key, snapshot)
    return _snapshot_response(document_key, snapshot)


@router.delete("/{document_key}", status_code=204)
async def delete(
    document_key: DocumentKey,
    db: AsyncSession = Depends(get_db),
):
    repo = DbSnapshotRepository(db)
    await forget_document(repo, document_key)


def _status(gate: SignificanceGate) -> SignificanceStatusResponse:
    return SignificanceStatusResponse(
        suspended=gate.is_suspended,
        suspended_by=gate.suspended_by,
        recent_actions=sorted(gate.recent_actions()),
    )


@significance_router.get("/", response_model=SignificanceStatusResponse)
async def significance_status(gate: SignificanceGate = Depends(get_significance_gate)):
    return _status(gate)


@significance_router.post("/actions", response_model=SignificanceStatusResponse)
async def mark_action(
    body: UserActionRequest,
    gate: SignificanceGate = Depends(get_significance_gate),
):
    gate.mark_user_action(body.action)
    return _status(gate)


@significance_router.post("/commands", response_model=SignificanceStatusResponse)
async def observe_command(
    body: CommandRequest,
    gate: SignificanceGate = Depends(get_significance_gate),
):
    gate.observe_command(body.command_line)
    return _status(gate)


@significance_router.post("/suspend", response_model=SignificanceStatusResponse)
async def suspend(
    body: SuspendRequest,
    gate: SignificanceGate = Depends(get_significance_gate),
):
    gate.suspend(body.reason)
    return _status(gate)


@significance_router.post("/resume", response_model=SignificanceStatusResponse)
async def resume(gate: SignificanceGate = Depends(get_significance_gate)):
    gate.resume()
    return _status(gate)
