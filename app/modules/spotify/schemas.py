from pydantic import BaseModel, Field
from typing import List, Optional


class SpotifySong(BaseModel):
    """A Spotify track in the shape of a library song"""
    title: str
    artist: str
    album: Optional[str] = None
    cover_url: Optional[str] = None
    spotify_id: Optional[str] = None
    preview_url: Optional[str] = None


class SpotifyTrackList(BaseModel):
    tracks: List[SpotifySong]
    total: Optional[int] = None


class SpotifyConnectionStatus(BaseModel):
    connected: bool
    spotify_user_id: Optional[str] = None
    connected_at: Optional[str] = None


class SongAudioFeatures(BaseModel):
    bpm: float
    key: str
    energy: float
    fetched_at: str


class PlaylistImportRequest(BaseModel):
    track_ids: List[str] = Field(..., min_length=1)


class PlaylistImportResult(BaseModel):
    success: bool
    imported: int
    skipped: int
