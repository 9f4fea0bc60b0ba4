from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from lovehub.schemas.entities import Decision, Match

class SwipeCreate(BaseModel):
    model_config = {"populate_by_name": True}

    from_user_id: str = Field(alias="from")
    to_user_id: str = Field(alias="to")
    decision: Decision

class SwipeResponse(BaseModel):
    matched: bool
    match: Optional[Match] = None

class ClearSwipesResponse(BaseModel):
    cleared: int

class MatchListItem(BaseModel):
    match_id: str
    users: tuple[str, str]
    other_user_id: str
    other_user_name: Optional[str] = None
    last_message: Optional[str] = None
    last_activity_at: datetime
    created_at: datetime

class ForceMatchRequest(BaseModel):
    user_a: str
    user_b: str
