"""
LoveHub — Stored entities.

These pydantic models are both the in-memory domain objects handed around
by the services and the records serialized into each collection blob.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Decision(str, enum.Enum):
    LIKE = "like"
    SKIP = "skip"


class User(BaseModel):
    id: str
    name: str
    age: int = Field(ge=18, le=120)
    gender: Gender
    location: str = ""
    bio: str = ""
    interests: list[str] = []
    photos: list[str] = []
    is_admin: bool = False

    @property
    def primary_photo(self) -> Optional[str]:
        return self.photos[0] if self.photos else None


class Like(BaseModel):
    """One swipe decision; immutable once recorded."""

    model_config = {"frozen": True}

    from_user_id: str
    to_user_id: str
    type: Decision
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _not_self(self) -> "Like":
        if self.from_user_id == self.to_user_id:
            raise ValueError("a user cannot swipe on themselves")
        return self


class Match(BaseModel):
    id: str
    users: tuple[str, str]
    created_at: datetime = Field(default_factory=utcnow)
    last_message: Optional[str] = None
    last_activity_at: Optional[datetime] = None

    @field_validator("users")
    @classmethod
    def _distinct_users(cls, v: tuple[str, str]) -> tuple[str, str]:
        if v[0] == v[1]:
            raise ValueError("a match needs two distinct users")
        return v

    @model_validator(mode="after")
    def _default_recency(self) -> "Match":
        if self.last_activity_at is None:
            self.last_activity_at = self.created_at
        return self

    def involves(self, user_id: str) -> bool:
        return user_id in self.users

    def is_pair(self, user_a: str, user_b: str) -> bool:
        """True if this match links exactly ``{user_a, user_b}``."""
        return set(self.users) == {user_a, user_b}

    def other_user(self, user_id: str) -> str:
        return self.users[1] if self.users[0] == user_id else self.users[0]


class Message(BaseModel):
    id: str
    match_id: str
    sender_id: str
    text: str = ""
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    read: bool = False
    read_at: Optional[datetime] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)
