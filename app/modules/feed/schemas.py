from pydantic import BaseModel
from typing import Optional, Dict, Any


class ActivityCreate(BaseModel):
    type: str
    reference_id: Optional[str] = None
    metadata: Dict[str, Any] = {}


class ActivityResponse(BaseModel):
    id: str
    user_id: str
    type: str
    reference_id: Optional[str] = None
    metadata: Dict[str, Any] = {}
    created_at: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    song: Optional[Dict[str, Any]] = None
    cover: Optional[Dict[str, Any]] = None
    friend: Optional[Dict[str, Any]] = None
