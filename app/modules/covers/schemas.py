from pydantic import BaseModel, Field
from typing import Optional, Literal

CoverVisibility = Literal["private", "friends", "public"]
MediaType = Literal["video", "audio"]


class CoverCreate(BaseModel):
    song_id: str
    media_url: str
    media_type: MediaType
    thumbnail_url: Optional[str] = None
    duration_seconds: Optional[int] = Field(None, ge=0)
    file_size_bytes: Optional[int] = Field(None, ge=0)
    visibility: CoverVisibility = "friends"
    description: Optional[str] = None


class CoverUpdate(BaseModel):
    thumbnail_url: Optional[str] = None
    visibility: Optional[CoverVisibility] = None
    description: Optional[str] = None


class CoverQuota(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    limit: Optional[int] = None
    current: Optional[int] = None


class CoverUploadResponse(BaseModel):
    success: bool = True
    url: str
    path: str
    media_type: MediaType
    file_size: int
