from typing import Protocol

from annotations.domain.entities import Snapshot


class SnapshotRepository(Protocol):
    async def get(self, document_key: str) -> Snapshot | None: ...

    async def save(
        self,
        document_key: str,
        snapshot: Snapshot,
        expected_revision: int | None = None,
    ) -> Snapshot: ...

    async def delete(self, document_key: str) -> None: ...

    async def list_keys(self) -> list[str]: ...
