from datetime import datetime

from sqlalchemy import JSON, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from shared.infrastructure.database import Base


class SnapshotModel(Base):
    __tablename__ = "annotation_snapshots"

    document_key: Mapped[str] = mapped_column(String(1024), primary_key=True)
    highlighted_ranges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    last_updated: Mapped[str] = mapped_column(String(64), nullable=False)
    document_version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    revision: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
