import logging
from dataclasses import replace

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from annotations.domain.entities import Snapshot
from annotations.infrastructure.models import SnapshotModel
from annotations.infrastructure.serialization import (
    format_timestamp,
    parse_timestamp,
    ranges_from_json,
    ranges_to_json,
)
from shared.exceptions import ConflictError, PersistenceError

logger = logging.getLogger(__name__)


class DbSnapshotRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, document_key: str) -> Snapshot | None:
        """Load a snapshot.

        A row that exists but cannot be decoded comes back as an empty snapshot
        carrying the row's revision, so the next save replaces it.
        """
        try:
            result = await self.session.execute(
                select(SnapshotModel)
                .where(SnapshotModel.document_key == document_key)
                .execution_options(populate_existing=True)
            )
            model = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Failed to load snapshot for %s", document_key)
            await self.session.rollback()
            return None

        if model is None:
            return None

        try:
            snapshot = _to_entity(model)
        except (KeyError, TypeError, ValueError):
            logger.exception("Stored snapshot for %s is malformed, starting empty", document_key)
            return replace(Snapshot.empty(), revision=model.revision)

        logger.debug("Loaded %d annotations for %s", len(snapshot.annotations), document_key)
        return snapshot

    async def save(
        self,
        document_key: str,
        snapshot: Snapshot,
        expected_revision: int | None = None,
    ) -> Snapshot:
        """Upsert a snapshot and return it with its new revision.

        With ``expected_revision`` set, an existing row is only overwritten while
        its stored revision still equals it.
        """
        values = {
            "highlighted_ranges": ranges_to_json(snapshot.annotations),
            "last_updated": format_timestamp(snapshot.last_updated_at),
            "document_version": snapshot.document_version,
        }

        try:
            stmt = update(SnapshotModel).where(SnapshotModel.document_key == document_key)
            if expected_revision is not None:
                stmt = stmt.where(SnapshotModel.revision == expected_revision)
            result = await self.session.execute(
                stmt.values(**values, revision=SnapshotModel.revision + 1).execution_options(
                    synchronize_session=False
                )
            )

            if result.rowcount == 0:
                if await self._exists(document_key) or expected_revision:
                    await self.session.rollback()
                    raise ConflictError(
                        f"Snapshot for {document_key} changed since revision {expected_revision}"
                    )
                self.session.add(SnapshotModel(document_key=document_key, revision=1, **values))

            await self.session.commit()
            revision = await self._revision(document_key)
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(f"Snapshot for {document_key} was created concurrently")
        except SQLAlchemyError as exc:
            logger.exception("Failed to save snapshot for %s", document_key)
            await self.session.rollback()
            raise PersistenceError(f"Failed to save snapshot for {document_key}") from exc

        logger.debug(
            "Saved %d annotations for %s at version %d (revision %d)",
            len(snapshot.annotations),
            document_key,
            snapshot.document_version,
            revision,
        )
        return replace(snapshot, revision=revision)

    async def delete(self, document_key: str) -> None:
        await self.session.execute(
            delete(SnapshotModel).where(SnapshotModel.document_key == document_key)
        )
        await self.session.commit()

    async def list_keys(self) -> list[str]:
        result = await self.session.execute(
            select(SnapshotModel.document_key).order_by(SnapshotModel.document_key)
        )
        return list(result.scalars().all())

    async def _exists(self, document_key: str) -> bool:
        return await self._revision(document_key) is not None

    async def _revision(self, document_key: str) -> int | None:
        result = await self.session.execute(
            select(SnapshotModel.revision).where(SnapshotModel.document_key == document_key)
        )
        return result.scalar_one_or_none()


def _to_entity(model: SnapshotModel) -> Snapshot:
    return Snapshot(
        annotations=ranges_from_json(model.highlighted_ranges or []),
        last_updated_at=parse_timestamp(model.last_updated),
        document_version=model.document_version,
        revision=model.revision,
    )
