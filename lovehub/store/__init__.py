from lovehub.store.base import EntityStore, Kind, StoreTransaction
from lovehub.store.memory import MemoryEntityStore

__all__ = [
    "EntityStore",
    "Kind",
    "MemoryEntityStore",
    "StoreTransaction",
    "build_store",
]


def build_store(settings) -> EntityStore:
    """Construct the store selected by ``STORE_BACKEND``."""
    if settings.STORE_BACKEND == "sql":
        from lovehub.database import get_engine
        from lovehub.store.sql import SqlEntityStore

        return SqlEntityStore(get_engine(), strict=settings.STRICT_STORAGE)
    return MemoryEntityStore(strict=settings.STRICT_STORAGE)
