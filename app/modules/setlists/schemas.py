from pydantic import BaseModel, Field
from typing import Optional, Literal

SetlistItemType = Literal["song", "section"]


class SetlistCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    concert_date: Optional[str] = None
    venue: Optional[str] = None
    band_id: Optional[str] = None


class SetlistUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    concert_date: Optional[str] = None
    venue: Optional[str] = None


class SetlistItemCreate(BaseModel):
    item_type: SetlistItemType
    position: Optional[int] = Field(None, ge=1)
    song_id: Optional[str] = None
    song_title: Optional[str] = None
    song_artist: Optional[str] = None
    song_cover_url: Optional[str] = None
    song_owner_id: Optional[str] = None
    section_name: Optional[str] = None
    notes: Optional[str] = None
    duration_seconds: Optional[int] = Field(None, ge=0)
    transition_seconds: int = Field(0, ge=0)


class SetlistItemUpdate(BaseModel):
    section_name: Optional[str] = None
    notes: Optional[str] = None
    duration_seconds: Optional[int] = Field(None, ge=0)
    transition_seconds: Optional[int] = Field(None, ge=0)


class SetlistItemMove(BaseModel):
    position: int = Field(..., ge=1)


class SetlistDuplicate(BaseModel):
    name: Optional[str] = None
