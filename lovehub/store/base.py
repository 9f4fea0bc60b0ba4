"""
LoveHub — Entity Store contract.

The store keeps four named collections (users, likes, matches, messages).
Each collection is persisted as one JSON array and is always replaced as a
whole, so a reader never observes a partial write.

Writers go through ``transaction()``, which serialises access per
collection kind and commits every buffered ``save`` together when the
block exits cleanly.  An exception inside the block discards the writes::

    async with store.transaction(Kind.LIKES, Kind.MATCHES) as tx:
        likes = await tx.load(Kind.LIKES)
        likes.append(like)
        tx.save(Kind.LIKES, likes)
"""

from __future__ import annotations

import asyncio
import enum
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Iterable, Optional, Protocol

import structlog
from pydantic import TypeAdapter, ValidationError

from lovehub.errors import StorageCorrupt
from lovehub.schemas.entities import Like, Match, Message, User
from lovehub.store.seed import seed_users

logger = structlog.get_logger("lovehub.store")


class Kind(str, enum.Enum):
    USERS = "users"
    LIKES = "likes"
    MATCHES = "matches"
    MESSAGES = "messages"


# Locks are always taken in this order to rule out deadlocks between
# transactions that span several kinds.
_KIND_ORDER: list[Kind] = [Kind.USERS, Kind.LIKES, Kind.MATCHES, Kind.MESSAGES]

_ADAPTERS: dict[Kind, TypeAdapter] = {
    Kind.USERS: TypeAdapter(list[User]),
    Kind.LIKES: TypeAdapter(list[Like]),
    Kind.MATCHES: TypeAdapter(list[Match]),
    Kind.MESSAGES: TypeAdapter(list[Message]),
}


def encode_collection(kind: Kind, entities: Iterable) -> str:
    """Serialize a whole collection to its JSON blob."""
    return _ADAPTERS[kind].dump_json(list(entities)).decode("utf-8")


def decode_collection(kind: Kind, blob: str) -> list:
    """Parse a collection blob; raises ``ValidationError`` on bad data."""
    return _ADAPTERS[kind].validate_json(blob)


def seed_state() -> dict[Kind, list]:
    """The demo dataset every kind is (re)initialised to."""
    return {
        Kind.USERS: seed_users(),
        Kind.LIKES: [],
        Kind.MATCHES: [],
        Kind.MESSAGES: [],
    }


class BackendHandle(Protocol):
    """Backend view of one open transaction."""

    async def read(self, kind: Kind) -> Optional[str]: ...

    async def write(self, blobs: dict[Kind, str]) -> None: ...


class StoreTransaction:
    """Buffered read/write access to the kinds locked by a transaction."""

    def __init__(self, store: "EntityStore", kinds: list[Kind], handle: BackendHandle) -> None:
        self._store = store
        self._kinds = kinds
        self._handle = handle
        self._pending: dict[Kind, list] = {}

    def _check(self, kind: Kind) -> None:
        if kind not in self._kinds:
            raise ValueError(f"{kind.value!r} is not locked by this transaction")

    async def exists(self, kind: Kind) -> bool:
        """True if the kind has ever been written."""
        self._check(kind)
        if kind in self._pending:
            return True
        return await self._handle.read(kind) is not None

    async def load(self, kind: Kind) -> list:
        self._check(kind)
        if kind in self._pending:
            return list(self._pending[kind])
        blob = await self._handle.read(kind)
        return self._store._decode(kind, blob)

    def save(self, kind: Kind, entities: Iterable) -> None:
        self._check(kind)
        self._pending[kind] = list(entities)

    @property
    def dirty(self) -> bool:
        return bool(self._pending)

    def encoded(self) -> dict[Kind, str]:
        return {kind: encode_collection(kind, items) for kind, items in self._pending.items()}


class EntityStore(ABC):
    """Collection store with per-kind single-writer transactions.

    Subclasses provide raw blob access; decoding, locking, seeding and the
    strict/lenient corruption policy live here.
    """

    def __init__(self, strict: bool = True) -> None:
        self.strict = strict
        self._locks: dict[Kind, asyncio.Lock] = {kind: asyncio.Lock() for kind in Kind}

    # ── Backend hooks ─────────────────────────────────────────────────────

    @abstractmethod
    async def _read_blob(self, kind: Kind) -> Optional[str]:
        """Return the stored blob for ``kind`` or None if never written."""

    @abstractmethod
    def _open(self, kinds: list[Kind]):
        """Async context manager yielding a ``BackendHandle``."""

    async def ping(self) -> None:
        """Raise if the backing storage is unreachable."""

    async def close(self) -> None:
        """Release backend resources."""

    # ── Public API ────────────────────────────────────────────────────────

    async def load(self, kind: Kind) -> list:
        blob = await self._read_blob(kind)
        return self._decode(kind, blob)

    async def save(self, kind: Kind, entities: Iterable) -> None:
        async with self.transaction(kind) as tx:
            tx.save(kind, entities)

    @asynccontextmanager
    async def transaction(self, *kinds: Kind) -> AsyncIterator[StoreTransaction]:
        ordered = [k for k in _KIND_ORDER if k in set(kinds)]
        async with AsyncExitStack() as stack:
            for kind in ordered:
                await stack.enter_async_context(self._locks[kind])
            async with self._open(ordered) as handle:
                tx = StoreTransaction(self, ordered, handle)
                yield tx
                if tx.dirty:
                    await handle.write(tx.encoded())
                    logger.debug(
                        "store_committed",
                        kinds=[k.value for k in tx.encoded()],
                    )

    async def reset(self) -> dict[Kind, list]:
        """Replace every collection with the seed dataset."""
        state = seed_state()
        async with self.transaction(*Kind) as tx:
            for kind, items in state.items():
                tx.save(kind, items)
        logger.info("store_reset", users=len(state[Kind.USERS]))
        return state

    async def ensure_seeded(self) -> bool:
        """Seed the roster if there are no users; create missing kinds.

        Returns True if anything was written.
        """
        state = seed_state()
        wrote = False
        async with self.transaction(*Kind) as tx:
            for kind in Kind:
                if not await tx.exists(kind):
                    tx.save(kind, state[kind])
                    wrote = True
            if not await tx.load(Kind.USERS):
                tx.save(Kind.USERS, state[Kind.USERS])
                wrote = True
        if wrote:
            logger.info("store_seeded")
        return wrote

    async def counts(self) -> dict[str, int]:
        return {kind.value: len(await self.load(kind)) for kind in Kind}

    # ── Internal ──────────────────────────────────────────────────────────

    def _decode(self, kind: Kind, blob: Optional[str]) -> list:
        if blob is None:
            return []
        try:
            return decode_collection(kind, blob)
        except ValidationError as exc:
            if self.strict:
                raise StorageCorrupt(
                    f"Stored {kind.value} collection is unreadable.",
                    kind=kind.value,
                ) from exc
            logger.warning(
                "storage_corrupt_blob",
                kind=kind.value,
                errors=exc.error_count(),
            )
            return []
