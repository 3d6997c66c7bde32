from fastapi import APIRouter, Depends, HTTPException
from app.modules.playlists.schemas import PlaylistCreate, PlaylistUpdate, PlaylistSongAdd
from app.modules.playlists.service import PlaylistService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/playlists", tags=["playlists"])


def get_playlist_service(supabase: Client = Depends(get_request_supabase)) -> PlaylistService:
    return PlaylistService(supabase)


@router.get("")
async def list_playlists(
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    """Caller's playlists with their songs"""
    return service.list_playlists(current_user["id"])


@router.post("", status_code=201)
async def create_playlist(
    data: PlaylistCreate,
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    return service.create_playlist(data, current_user["id"])


@router.get("/for-song/{song_id}")
async def playlists_for_song(
    song_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    return service.playlists_for_song(song_id, current_user["id"])


@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    return service.get_playlist(playlist_id, current_user["id"])


@router.put("/{playlist_id}")
async def update_playlist(
    playlist_id: str,
    data: PlaylistUpdate,
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    return service.update_playlist(playlist_id, data, current_user["id"])


@router.delete("/{playlist_id}", status_code=204)
async def delete_playlist(
    playlist_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    if not service.delete_playlist(playlist_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Playlist non trouvée")


@router.post("/{playlist_id}/songs", status_code=201)
async def add_song_to_playlist(
    playlist_id: str,
    data: PlaylistSongAdd,
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    return service.add_song(playlist_id, data.song_id, current_user["id"])


@router.delete("/{playlist_id}/songs/{song_id}", status_code=204)
async def remove_song_from_playlist(
    playlist_id: str,
    song_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PlaylistService = Depends(get_playlist_service)
):
    service.remove_song(playlist_id, song_id, current_user["id"])
