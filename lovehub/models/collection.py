"""
LoveHub — Collection blob model.

Each row holds one entity collection (users, likes, matches, messages)
serialized as a JSON array.  ``version`` increases on every write.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from lovehub.database import Base


class CollectionBlob(Base):
    __tablename__ = "collections"

    kind: Mapped[str] = mapped_column(String(32), primary_key=True)
    payload: Mapped[str] = mapped_column(
        Text, nullable=False, comment="JSON array of entity records"
    )
    version: Mapped[int] = mapped_column(
        Integer, default=1, server_default="1", nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<CollectionBlob {self.kind!r} v{self.version}>"
