from fastapi import APIRouter, Depends, HTTPException
from app.modules.songs.schemas import SongCreate, SongUpdate, SongStatusUpdate, SongProgressUpdate
from app.modules.songs.service import SongService
from app.modules.challenges.routes import get_challenge_service
from app.modules.challenges.service import ChallengeService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/songs", tags=["songs"])


def get_song_service(
    supabase: Client = Depends(get_request_supabase),
    challenges: ChallengeService = Depends(get_challenge_service)
) -> SongService:
    return SongService(supabase, challenges=challenges)


@router.get("")
async def list_songs(
    current_user: Dict = Depends(get_current_user),
    service: SongService = Depends(get_song_service)
):
    """List the caller's library"""
    return service.list_songs(current_user["id"])


@router.post("", status_code=201)
async def create_song(
    song_data: SongCreate,
    current_user: Dict = Depends(get_current_user),
    service: SongService = Depends(get_song_service)
):
    """Add a song (free plan: 10 songs max)"""
    return service.create_song(song_data, current_user["id"])


@router.get("/{song_id}")
async def get_song(
    song_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SongService = Depends(get_song_service)
):
    return service.get_song(song_id, current_user["id"])


@router.put("/{song_id}")
async def update_song(
    song_id: str,
    song_data: SongUpdate,
    current_user: Dict = Depends(get_current_user),
    service: SongService = Depends(get_song_service)
):
    return service.update_song(song_id, song_data, current_user["id"])


@router.patch("/{song_id}/status")
async def update_song_status(
    song_id: str,
    body: SongStatusUpdate,
    current_user: Dict = Depends(get_current_user),
    service: SongService = Depends(get_song_service)
):
    return service.update_status(song_id, body.status, current_user["id"])


@router.patch("/{song_id}/progress")
async def update_song_progress(
    song_id: str,
    body: SongProgressUpdate,
    current_user: Dict = Depends(get_current_user),
    service: SongService = Depends(get_song_service)
):
    return service.update_progress(song_id, body.progress_percent, current_user["id"])


@router.delete("/{song_id}", status_code=204)
async def delete_song(
    song_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SongService = Depends(get_song_service)
):
    if not service.delete_song(song_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Morceau non trouvé")
