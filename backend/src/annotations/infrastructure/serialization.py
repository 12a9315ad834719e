"""Convert snapshots to and from the persisted JSON shape.

    {"highlightedRanges": [{"startLine", "endLine", "timestamp", "type"}],
     "lastUpdated": "<ISO-8601>", "documentVersion": <int>}
"""

import logging
from datetime import datetime, timezone
from typing import Any

from annotations.domain.entities import Annotation, AnnotationKind, Snapshot

logger = logging.getLogger(__name__)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def annotation_to_dict(annotation: Annotation) -> dict[str, Any]:
    return {
        "startLine": annotation.start_line,
        "endLine": annotation.end_line,
        "timestamp": format_timestamp(annotation.created_at),
        "type": annotation.kind.value,
    }


def annotation_from_dict(data: dict[str, Any]) -> Annotation:
    return Annotation(
        start_line=int(data["startLine"]),
        end_line=int(data["endLine"]),
        created_at=parse_timestamp(data["timestamp"]),
        kind=AnnotationKind(data.get("type", AnnotationKind.TOOL_GENERATED)),
    )


def ranges_to_json(annotations: list[Annotation]) -> list[dict[str, Any]]:
    return [annotation_to_dict(a) for a in annotations]


def ranges_from_json(data: list[dict[str, Any]]) -> list[Annotation]:
    annotations = [annotation_from_dict(item) for item in data]
    valid = [a for a in annotations if a.start_line <= a.end_line]
    if len(valid) != len(annotations):
        logger.warning("Dropped %d inverted ranges while decoding", len(annotations) - len(valid))
    return valid


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "highlightedRanges": ranges_to_json(snapshot.annotations),
        "lastUpdated": format_timestamp(snapshot.last_updated_at),
        "documentVersion": snapshot.document_version,
    }


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    return Snapshot(
        annotations=ranges_from_json(data.get("highlightedRanges", [])),
        last_updated_at=parse_timestamp(data["lastUpdated"]),
        document_version=int(data.get("documentVersion", 0)),
    )
