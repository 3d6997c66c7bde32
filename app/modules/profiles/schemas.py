from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal

FriendshipStatus = Literal["self", "none", "pending", "accepted", "blocked"]


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    display_name: Optional[str] = None
    bio: Optional[str] = None
    is_private: Optional[bool] = None
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    facebook_url: Optional[str] = None


class FavoriteSongSet(BaseModel):
    song_id: str
    position: int = Field(..., ge=1, le=4)


class FavoriteAlbumSet(BaseModel):
    album_name: str = Field(..., min_length=1)
    artist_name: str = Field(..., min_length=1)
    cover_url: Optional[str] = None
    spotify_id: Optional[str] = None
    position: int = Field(..., ge=1, le=4)


class ProfileStats(BaseModel):
    totalSongs: Optional[int] = None
    masteredSongs: Optional[int] = None
    totalCovers: int = 0
    friendsCount: Optional[int] = None


class PublicProfileResponse(BaseModel):
    profile: Dict[str, Any]
    favorite_songs: Optional[List[Dict[str, Any]]] = None
    favorite_albums: Optional[List[Dict[str, Any]]] = None
    recent_songs: Optional[List[Dict[str, Any]]] = None
    recent_covers: List[Dict[str, Any]] = []
    stats: ProfileStats
    friendship_status: FriendshipStatus
    is_friend: bool


class AvatarResponse(BaseModel):
    success: bool = True
    url: str
