from pydantic import BaseModel, Field
from typing import Optional


class PlaylistCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class PlaylistUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class PlaylistSongAdd(BaseModel):
    song_id: str
