from pydantic import BaseModel
from typing import Optional, List, Dict, Any, Literal

FriendshipStatus = Literal["self", "none", "pending", "accepted", "blocked"]


class FriendRequestCreate(BaseModel):
    addressee_id: str


class BlockUserRequest(BaseModel):
    user_id: str


class UserSearchResult(BaseModel):
    id: str
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    friendshipStatus: FriendshipStatus


class Friend(BaseModel):
    id: str
    profile: Optional[Dict[str, Any]] = None
    since: Optional[str] = None


class FriendRequest(BaseModel):
    id: str
    requester: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None


class FriendsLimitInfo(BaseModel):
    isLimited: bool
    current: int
    limit: Optional[int] = None


class FriendProfile(BaseModel):
    profile: Dict[str, Any]
    songs: List[Dict[str, Any]]
    covers: List[Dict[str, Any]]
    friendship: Dict[str, Any]
    stats: Dict[str, int]
