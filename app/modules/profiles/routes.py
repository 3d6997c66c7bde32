from fastapi import APIRouter, Depends, File, HTTPException, Path, UploadFile
from app.modules.profiles.schemas import (
    ProfileUpdate, FavoriteSongSet, FavoriteAlbumSet, PublicProfileResponse, AvatarResponse
)
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_request_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me")
async def get_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Own profile, favourites and stats"""
    return service.get_my_profile(current_user["id"])


@router.put("/me")
async def update_my_profile(
    data: ProfileUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.update_profile(data, current_user["id"])


@router.post("/me/avatar", response_model=AvatarResponse)
async def upload_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    content = await avatar.read() if avatar is not None else None
    return service.upload_avatar(
        current_user["id"],
        avatar.filename if avatar is not None else None,
        avatar.content_type if avatar is not None else None,
        content
    )


@router.put("/me/favorite-songs")
async def set_favorite_song(
    data: FavoriteSongSet,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.set_favorite_song(data, current_user["id"])


@router.delete("/me/favorite-songs/{position}", status_code=204)
async def remove_favorite_song(
    position: int = Path(..., ge=1, le=4),
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    if not service.remove_favorite_song(position, current_user["id"]):
        raise HTTPException(status_code=404, detail="Favori non trouvé")


@router.put("/me/favorite-albums")
async def set_favorite_album(
    data: FavoriteAlbumSet,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.set_favorite_album(data, current_user["id"])


@router.delete("/me/favorite-albums/{position}", status_code=204)
async def remove_favorite_album(
    position: int = Path(..., ge=1, le=4),
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    if not service.remove_favorite_album(position, current_user["id"]):
        raise HTTPException(status_code=404, detail="Favori non trouvé")


@router.get("/{user_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    user_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Profile of another user, trimmed to what the caller may see"""
    return service.get_public_profile(user_id, current_user["id"])
