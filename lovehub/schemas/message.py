from pydantic import BaseModel, Field
from typing import Optional

class MessageCreate(BaseModel):
    model_config = {"populate_by_name": True}

    match_id: str = Field(alias="match")
    sender_id: str = Field(alias="sender")
    text: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageRef")

class MarkReadRequest(BaseModel):
    model_config = {"populate_by_name": True}

    match_id: str = Field(alias="match")
    reader_id: str = Field(alias="reader")

class MarkReadResponse(BaseModel):
    marked: int
