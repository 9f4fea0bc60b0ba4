from pydantic import BaseModel, Field
from typing import Optional

from lovehub.schemas.entities import Gender

class UserCreate(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = Field(None, ge=18, le=120)
    gender: Optional[Gender] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    interests: Optional[list[str]] = None
    photos: Optional[list[str]] = None

class UserUpdate(BaseModel):
    name: Optional[str] = None
    age: Optional[int] = Field(None, ge=18, le=120)
    gender: Optional[Gender] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    interests: Optional[list[str]] = None
    photos: Optional[list[str]] = None
