from datetime import datetime

from pydantic import BaseModel, Field

from annotations.domain.entities import AnnotationKind


class ChangeEventRequest(BaseModel):
    """Editor content change; line numbers are 0-based."""

    start_line: int = Field(ge=0)
    start_character: int = Field(default=0, ge=0)
    end_line: int = Field(ge=0)
    end_character: int = Field(default=0, ge=0)
    text: str = ""
    range_length: int = Field(default=0, ge=0)


class CommitRequest(BaseModel):
    document_version: int
    changes: list[ChangeEventRequest] = []
    reason: str | None = None
    is_significant: bool | None = None


class AnnotationResponse(BaseModel):
    start_line: int
    end_line: int
    created_at: datetime
    kind: AnnotationKind


class SnapshotResponse(BaseModel):
    document_key: str
    annotations: list[AnnotationResponse]
    last_updated_at: datetime
    document_version: int


class RemoveAnnotationRequest(BaseModel):
    start_line: int = Field(ge=1)
    end_line: int = Field(ge=1)
    created_at: datetime


class RemoveLinesRequest(RemoveAnnotationRequest):
    remove_start_line: int = Field(ge=1)
    remove_end_line: int = Field(ge=1)


class UserActionRequest(BaseModel):
    action: str


class CommandRequest(BaseModel):
    command_line: str


class SuspendRequest(BaseModel):
    reason: str = "manual"


class SignificanceStatusResponse(BaseModel):
    suspended: bool
    suspended_by: str | None = None
    recent_actions: list[str]


class ResolveKeyRequest(BaseModel):
    """Workspace-relative document path, e.g. ``src/app/main.py``."""

    path: str = Field(min_length=1, max_length=1024)


class DocumentKeyResponse(BaseModel):
    path: str
    document_key: str
