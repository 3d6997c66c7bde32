from pydantic import BaseModel
from typing import Optional


class IdentifiedSong(BaseModel):
    title: str
    artist: str
    album: Optional[str] = None
    release_date: Optional[str] = None
    cover_url: Optional[str] = None
    spotify_id: Optional[str] = None
    preview_url: Optional[str] = None


class IdentifyResponse(BaseModel):
    result: Optional[IdentifiedSong] = None
    message: Optional[str] = None
