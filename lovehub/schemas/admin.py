from pydantic import BaseModel

class StoreStatsResponse(BaseModel):
    users: int
    likes: int
    matches: int
    messages: int
