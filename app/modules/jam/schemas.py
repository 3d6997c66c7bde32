from pydantic import BaseModel, Field
from typing import Optional, Literal

JamStatus = Literal["waiting", "active", "paused", "ended"]

OPEN_STATUSES = ["waiting", "active", "paused"]


class JamSessionCreate(BaseModel):
    band_id: str
    setlist_id: Optional[str] = None


class JamSessionUpdate(BaseModel):
    status: Optional[JamStatus] = None
    bpm: Optional[int] = Field(None, ge=20, le=300)
    time_signature_beats: Optional[int] = Field(None, ge=1, le=16)
    time_signature_value: Optional[int] = Field(None, ge=1, le=16)
    is_metronome_playing: Optional[bool] = None
    current_song_index: Optional[int] = Field(None, ge=0)
    current_song_id: Optional[str] = None
    current_song_title: Optional[str] = None
    current_song_artist: Optional[str] = None


class JamMessageCreate(BaseModel):
    content: str
