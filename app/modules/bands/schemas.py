from pydantic import BaseModel, Field
from typing import Optional


class BandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    avatar_url: Optional[str] = None


class BandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    avatar_url: Optional[str] = None


class BandInvitationCreate(BaseModel):
    invitee_id: str
