"""
LoveHub — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from lovehub.models.collection import CollectionBlob

__all__ = [
    "CollectionBlob",
]
