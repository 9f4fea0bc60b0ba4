"""In-process entity store: one JSON blob per kind held in a dict."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from lovehub.store.base import EntityStore, Kind


class _MemoryHandle:
    def __init__(self, blobs: dict[Kind, str]) -> None:
        self._blobs = blobs

    async def read(self, kind: Kind) -> Optional[str]:
        return self._blobs.get(kind)

    async def write(self, blobs: dict[Kind, str]) -> None:
        self._blobs.update(blobs)


class MemoryEntityStore(EntityStore):
    """Blobs are kept serialized so that loads never alias stored state."""

    def __init__(self, strict: bool = True, blobs: Optional[dict[Kind, str]] = None) -> None:
        super().__init__(strict=strict)
        self._blobs: dict[Kind, str] = dict(blobs or {})

    async def _read_blob(self, kind: Kind) -> Optional[str]:
        return self._blobs.get(kind)

    @asynccontextmanager
    async def _open(self, kinds: list[Kind]) -> AsyncIterator[_MemoryHandle]:
        yield _MemoryHandle(self._blobs)

    def raw(self, kind: Kind) -> Optional[str]:
        """The stored blob, exactly as persisted."""
        return self._blobs.get(kind)

    def put_raw(self, kind: Kind, blob: str) -> None:
        """Overwrite a blob without validation (imports and fixtures)."""
        self._blobs[kind] = blob
