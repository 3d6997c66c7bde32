import uuid
from urllib.parse import urlencode
import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from app.config.settings import settings
from app.config.plans_config import PAID_PLANS
from app.database.supabase_client import get_service_supabase
from app.modules.spotify.schemas import (
    SpotifySong, SpotifyTrackList, SpotifyConnectionStatus, SongAudioFeatures,
    PlaylistImportRequest, PlaylistImportResult
)
from app.modules.spotify.service import SpotifyService, OAUTH_STATE_COOKIE, OAUTH_STATE_MAX_AGE
from app.core.dependencies import get_current_user, get_optional_user, get_request_supabase, require_paid_plan, require_plan
from app.core.http import get_http_client
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/spotify", tags=["spotify"])

require_spotify_plan = require_plan(PAID_PLANS, "Fonctionnalité réservée aux plans Pro et Band")


def get_spotify_service(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    admin_supabase: Client = Depends(get_service_supabase),
    supabase: Client = Depends(get_request_supabase)
) -> SpotifyService:
    return SpotifyService(http_client, admin_supabase, supabase)


def get_spotify_admin_service(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    admin_supabase: Client = Depends(get_service_supabase)
) -> SpotifyService:
    return SpotifyService(http_client, admin_supabase)


def profile_redirect(status: str, reason: Optional[str] = None) -> RedirectResponse:
    params = {"spotify": status}
    if reason:
        params["reason"] = reason
    query = urlencode(params)
    response = RedirectResponse(f"{settings.app_url}/profile/edit?{query}", status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/")
    return response


@router.get("/auth")
async def spotify_authorize(current_user: Dict = Depends(require_paid_plan)):
    """Start the authorization-code flow"""
    if not settings.spotify_client_id:
        raise HTTPException(status_code=500, detail="Spotify non configuré")
    state = str(uuid.uuid4())
    response = RedirectResponse(SpotifyService.build_authorize_url(state), status_code=302)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=OAUTH_STATE_MAX_AGE,
        path="/",
    )
    return response


@router.get("/callback")
async def spotify_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    current_user: Optional[Dict] = Depends(get_optional_user),
    service: SpotifyService = Depends(get_spotify_admin_service)
):
    """Spotify redirects here; always answers with a redirect to the profile page"""
    if error:
        return profile_redirect("error", error)
    if not code or not state:
        return profile_redirect("error", "missing_params")
    if state != request.cookies.get(OAUTH_STATE_COOKIE):
        return profile_redirect("error", "state_mismatch")
    if not current_user:
        return profile_redirect("error", "not_authenticated")
    if not service.is_configured():
        return profile_redirect("error", "config")

    token_data = await service.exchange_code(code)
    if not token_data:
        return profile_redirect("error", "token_exchange")
    await service.connect(current_user["id"], token_data)
    return profile_redirect("connected")


@router.post("/disconnect")
async def spotify_disconnect(
    current_user: Dict = Depends(get_current_user),
    service: SpotifyService = Depends(get_spotify_admin_service)
):
    service.disconnect(current_user["id"])
    return {"success": True}


@router.get("/status", response_model=SpotifyConnectionStatus)
async def spotify_status(
    current_user: Dict = Depends(get_current_user),
    service: SpotifyService = Depends(get_spotify_admin_service)
):
    return service.get_status(current_user["id"])


@router.get("/search", response_model=List[SpotifySong])
async def search_spotify(
    q: Optional[str] = Query(None),
    current_user: Dict = Depends(get_current_user),
    service: SpotifyService = Depends(get_spotify_admin_service)
):
    """Catalogue search mapped to library songs"""
    if not q:
        raise HTTPException(status_code=400, detail="Le paramètre q est requis")
    return await service.search_tracks(q)


@router.get("/playlists")
async def spotify_playlists(
    current_user: Dict = Depends(require_paid_plan),
    service: SpotifyService = Depends(get_spotify_service)
):
    return await service.list_playlists(current_user["id"])


@router.get("/playlists/{playlist_id}/tracks", response_model=SpotifyTrackList)
async def spotify_playlist_tracks(
    playlist_id: str,
    current_user: Dict = Depends(require_paid_plan),
    service: SpotifyService = Depends(get_spotify_service)
):
    return await service.playlist_tracks(current_user["id"], playlist_id)


@router.post("/playlists/{playlist_id}/import", response_model=PlaylistImportResult)
async def import_spotify_playlist(
    playlist_id: str,
    data: PlaylistImportRequest,
    current_user: Dict = Depends(require_spotify_plan),
    service: SpotifyService = Depends(get_spotify_service)
):
    """Add the selected tracks to the library"""
    return await service.import_playlist(current_user["id"], playlist_id, data.track_ids)


@router.get("/recently-played", response_model=SpotifyTrackList, response_model_exclude_none=True)
async def spotify_recently_played(
    current_user: Dict = Depends(require_paid_plan),
    service: SpotifyService = Depends(get_spotify_service)
):
    return await service.recently_played(current_user["id"])


@router.get("/audio-features")
async def spotify_audio_features(
    spotify_id: Optional[str] = Query(None),
    current_user: Dict = Depends(require_paid_plan),
    service: SpotifyService = Depends(get_spotify_admin_service)
):
    if not spotify_id:
        raise HTTPException(status_code=400, detail="spotify_id requis")
    features = await service.get_audio_features(spotify_id)
    if not features:
        raise HTTPException(status_code=404, detail="Données audio non disponibles")
    return features


@router.post("/songs/{song_id}/audio-features", response_model=SongAudioFeatures)
async def song_audio_features(
    song_id: str,
    current_user: Dict = Depends(require_spotify_plan),
    service: SpotifyService = Depends(get_spotify_service)
):
    """BPM, key and energy of a library song (cached for 7 days)"""
    return await service.song_audio_features(song_id, current_user["id"])
