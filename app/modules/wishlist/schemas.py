from pydantic import BaseModel, Field
from typing import Optional


class WishlistSongCreate(BaseModel):
    title: str = Field(..., min_length=1)
    artist: str = Field(..., min_length=1)
    album: Optional[str] = None
    cover_url: Optional[str] = None
    spotify_id: Optional[str] = None
    preview_url: Optional[str] = None
