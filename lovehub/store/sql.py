"""
LoveHub — SQL-backed entity store.

Collections live in the ``collections`` table, one row per kind.  A
transaction takes ``SELECT ... FOR UPDATE`` row locks on the kinds it
writes, so the single-writer guarantee also holds between processes that
share the database (the in-process locks of ``EntityStore`` cover the
rest).  A kind that has no row yet is written with an upsert, so two
processes seeding an empty database at once both succeed.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lovehub.database import make_session_factory
from lovehub.models.collection import CollectionBlob
from lovehub.store.base import EntityStore, Kind

logger = structlog.get_logger("lovehub.store.sql")


def _insert_for(dialect_name: str):
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        from sqlalchemy.dialects.postgresql import insert
    return insert


class _SqlHandle:
    def __init__(
        self,
        session: AsyncSession,
        rows: dict[str, CollectionBlob],
        dialect_name: str = "postgresql",
    ) -> None:
        self._session = session
        self._rows = rows
        self._insert = _insert_for(dialect_name)
        self._created: dict[str, str] = {}

    async def read(self, kind: Kind) -> Optional[str]:
        row = self._rows.get(kind.value)
        if row is not None:
            return row.payload
        return self._created.get(kind.value)

    async def write(self, blobs: dict[Kind, str]) -> None:
        now = datetime.now(timezone.utc)
        for kind, payload in blobs.items():
            row = self._rows.get(kind.value)
            if row is None:
                # No row to lock yet: another process may insert the same
                # kind concurrently, so the insert must not conflict.
                stmt = self._insert(CollectionBlob).values(
                    kind=kind.value, payload=payload, version=1, updated_at=now
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[CollectionBlob.kind],
                    set_={
                        "payload": stmt.excluded.payload,
                        "version": CollectionBlob.version + 1,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                await self._session.execute(stmt)
                self._created[kind.value] = payload
            else:
                row.payload = payload
                row.version = row.version + 1
                row.updated_at = now
        await self._session.flush()


class SqlEntityStore(EntityStore):
    def __init__(self, engine: AsyncEngine, strict: bool = True) -> None:
        super().__init__(strict=strict)
        self._engine = engine
        self._session_factory: async_sessionmaker[AsyncSession] = make_session_factory(engine)

    async def _read_blob(self, kind: Kind) -> Optional[str]:
        async with self._session_factory() as session:
            row = await session.get(CollectionBlob, kind.value)
            return row.payload if row is not None else None

    @asynccontextmanager
    async def _open(self, kinds: list[Kind]) -> AsyncIterator[_SqlHandle]:
        async with self._session_factory() as session:
            async with session.begin():
                stmt = (
                    select(CollectionBlob)
                    .where(CollectionBlob.kind.in_([k.value for k in kinds]))
                    .with_for_update()
                )
                result = await session.execute(stmt)
                rows = {row.kind: row for row in result.scalars().all()}
                yield _SqlHandle(session, rows, self._engine.dialect.name)

    async def ping(self) -> None:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("database_pool_closed")
