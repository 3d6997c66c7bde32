from pydantic import BaseModel, Field
from typing import Optional, Literal

SongStatus = Literal["want_to_learn", "learning", "mastered"]
SongDifficulty = Literal["beginner", "intermediate", "advanced", "expert"]


class SongCreate(BaseModel):
    title: str = Field(..., min_length=1)
    artist: str = Field(..., min_length=1)
    album: Optional[str] = None
    cover_url: Optional[str] = None
    spotify_id: Optional[str] = None
    preview_url: Optional[str] = None
    difficulty: Optional[SongDifficulty] = None
    status: SongStatus = "want_to_learn"
    progress_percent: int = Field(0, ge=0, le=100)
    tuning: str = "Standard"
    capo_position: int = Field(0, ge=0, le=12)
    tabs_url: Optional[str] = None
    notes: Optional[str] = None


class SongUpdate(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    cover_url: Optional[str] = None
    difficulty: Optional[SongDifficulty] = None
    status: Optional[SongStatus] = None
    progress_percent: Optional[int] = Field(None, ge=0, le=100)
    tuning: Optional[str] = None
    capo_position: Optional[int] = Field(None, ge=0, le=12)
    tabs_url: Optional[str] = None
    notes: Optional[str] = None


class SongStatusUpdate(BaseModel):
    status: SongStatus


class SongProgressUpdate(BaseModel):
    progress_percent: int = Field(..., ge=0, le=100)
