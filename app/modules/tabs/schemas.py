from pydantic import BaseModel
from typing import List, Literal, Optional


class TabSource(BaseModel):
    source: Literal["songsterr", "ultimate_guitar"]
    title: str
    artist: str
    url: str
    type: Optional[str] = None


class TabSearchResponse(BaseModel):
    sources: List[TabSource]
