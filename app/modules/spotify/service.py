import base64
import logging
import time
import httpx
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Dict, Any
from urllib.parse import urlencode
from fastapi import HTTPException
from supabase import Client
from app.config.settings import settings
from app.modules.spotify.schemas import (
    SpotifySong, SpotifyTrackList, SpotifyConnectionStatus, SongAudioFeatures, PlaylistImportResult
)

logger = logging.getLogger(__name__)

SPOTIFY_ACCOUNTS_URL = "https://accounts.spotify.com"
SPOTIFY_API_URL = "https://api.spotify.com/v1"
SPOTIFY_SCOPES = "user-read-recently-played playlist-read-private user-library-read"
OAUTH_STATE_COOKIE = "spotify_oauth_state"
OAUTH_STATE_MAX_AGE = 600
AUDIO_FEATURES_TTL = timedelta(days=7)

KEY_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

SPOTIFY_PROFILE_FIELDS = (
    "spotify_access_token", "spotify_refresh_token", "spotify_token_expires_at",
    "spotify_user_id", "spotify_connected_at",
)

# Client-credentials token shared by catalogue calls (search, audio features)
_client_token: Optional[str] = None
_client_token_expiry: float = 0


def clear_client_token_cache():
    global _client_token, _client_token_expiry
    _client_token = None
    _client_token_expiry = 0


def format_key_name(key: Optional[int], mode: Optional[int] = 1) -> str:
    """Pitch class and mode as a chord-style name: 0/1 -> "C", 9/0 -> "Am"."""
    if key is None or key < 0 or key >= len(KEY_NAMES):
        return "Inconnue"
    return KEY_NAMES[key] if mode != 0 else f"{KEY_NAMES[key]}m"


def format_track_for_song(track: Dict[str, Any]) -> SpotifySong:
    album = track.get("album") or {}
    images = album.get("images") or []
    return SpotifySong(
        title=track.get("name") or "",
        artist=", ".join(a.get("name", "") for a in track.get("artists") or []),
        album=album.get("name"),
        cover_url=images[0].get("url") if images else None,
        spotify_id=track.get("id"),
        preview_url=track.get("preview_url"),
    )


def dedupe_recently_played(items: List[Dict[str, Any]]) -> List[SpotifySong]:
    """Keep the first play of each track"""
    seen = set()
    tracks = []
    for item in items:
        track = item.get("track")
        if not track or track.get("id") in seen:
            continue
        seen.add(track.get("id"))
        tracks.append(format_track_for_song(track))
    return tracks


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _basic_auth_header() -> str:
    credentials = f"{settings.spotify_client_id}:{settings.spotify_client_secret}"
    return f"Basic {base64.b64encode(credentials.encode()).decode()}"


class SpotifyService:
    """
    Spotify catalogue and per-user access.

    Tokens are stored on the profile and read/written with the service-role
    client; library writes (import, audio-features cache) use the caller's client.
    """

    def __init__(self, http_client: httpx.AsyncClient, admin_supabase: Client, supabase: Optional[Client] = None):
        self.http_client = http_client
        self.admin_supabase = admin_supabase
        self.supabase = supabase or admin_supabase

    # OAuth

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.spotify_client_id and settings.spotify_client_secret)

    @staticmethod
    def build_authorize_url(state: str) -> str:
        params = urlencode({
            "response_type": "code",
            "client_id": settings.spotify_client_id,
            "scope": SPOTIFY_SCOPES,
            "redirect_uri": settings.spotify_callback_url,
            "state": state,
        })
        return f"{SPOTIFY_ACCOUNTS_URL}/authorize?{params}"

    async def _request_token(self, data: Dict[str, str]) -> Optional[Dict[str, Any]]:
        try:
            response = await self.http_client.post(
                f"{SPOTIFY_ACCOUNTS_URL}/api/token",
                data=data,
                headers={"Authorization": _basic_auth_header()},
            )
        except httpx.HTTPError as e:
            logger.error(f"Spotify token request failed: {e}")
            return None
        if response.status_code >= 400:
            logger.error(f"Spotify token request rejected: {response.status_code}")
            return None
        return response.json()

    async def exchange_code(self, code: str) -> Optional[Dict[str, Any]]:
        return await self._request_token({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": settings.spotify_callback_url,
        })

    async def connect(self, user_id: str, token_data: Dict[str, Any]) -> None:
        """Store the tokens from a code exchange along with the Spotify account id"""
        spotify_user_id = None
        try:
            me = await self.http_client.get(
                f"{SPOTIFY_API_URL}/me",
                headers={"Authorization": f"Bearer {token_data['access_token']}"},
            )
            if me.status_code < 400:
                spotify_user_id = me.json().get("id")
        except httpx.HTTPError as e:
            logger.warning(f"Could not read Spotify profile: {e}")

        now = datetime.now(timezone.utc)
        self.admin_supabase.table("profiles")\
            .update({
                "spotify_access_token": token_data["access_token"],
                "spotify_refresh_token": token_data.get("refresh_token"),
                "spotify_token_expires_at": (now + timedelta(seconds=token_data.get("expires_in", 3600))).isoformat(),
                "spotify_user_id": spotify_user_id,
                "spotify_connected_at": now.isoformat(),
            })\
            .eq("id", user_id)\
            .execute()
        logger.info(f"Spotify connected for user {user_id}")

    def disconnect(self, user_id: str) -> None:
        self.admin_supabase.table("profiles")\
            .update({field: None for field in SPOTIFY_PROFILE_FIELDS})\
            .eq("id", user_id)\
            .execute()

    def get_status(self, user_id: str) -> SpotifyConnectionStatus:
        profile = self._get_token_profile(user_id)
        if not profile or not profile.get("spotify_access_token"):
            return SpotifyConnectionStatus(connected=False)
        return SpotifyConnectionStatus(
            connected=True,
            spotify_user_id=profile.get("spotify_user_id"),
            connected_at=profile.get("spotify_connected_at"),
        )

    # Tokens

    def _get_token_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.admin_supabase.table("profiles")\
            .select(", ".join(SPOTIFY_PROFILE_FIELDS))\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    async def get_user_token(self, user_id: str) -> Optional[str]:
        """
        Access token for the user's Spotify account.

        An expired token (or one expiring within a minute) is refreshed and the
        new values stored. None when the account is not linked or the refresh fails.
        """
        profile = self._get_token_profile(user_id)
        if not profile or not profile.get("spotify_access_token"):
            return None

        expires_at = parse_timestamp(profile.get("spotify_token_expires_at"))
        if expires_at and expires_at - timedelta(seconds=60) > datetime.now(timezone.utc):
            return profile["spotify_access_token"]

        refresh_token = profile.get("spotify_refresh_token")
        if not refresh_token or not self.is_configured():
            return None
        token_data = await self._request_token({"grant_type": "refresh_token", "refresh_token": refresh_token})
        if not token_data or not token_data.get("access_token"):
            return None

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=token_data.get("expires_in", 3600))
        self.admin_supabase.table("profiles")\
            .update({
                "spotify_access_token": token_data["access_token"],
                "spotify_refresh_token": token_data.get("refresh_token") or refresh_token,
                "spotify_token_expires_at": expires_at.isoformat(),
            })\
            .eq("id", user_id)\
            .execute()
        return token_data["access_token"]

    async def _require_user_token(self, user_id: str) -> str:
        token = await self.get_user_token(user_id)
        if not token:
            raise HTTPException(status_code=401, detail="Connexion Spotify expirée")
        return token

    async def get_client_token(self) -> str:
        global _client_token, _client_token_expiry
        if _client_token and time.time() < _client_token_expiry:
            return _client_token
        if not self.is_configured():
            raise HTTPException(status_code=500, detail="Spotify non configuré")

        token_data = await self._request_token({"grant_type": "client_credentials"})
        if not token_data:
            raise HTTPException(status_code=502, detail="Erreur Spotify")
        _client_token = token_data["access_token"]
        # Expire one minute early
        _client_token_expiry = time.time() + token_data.get("expires_in", 3600) - 60
        return _client_token

    async def _api_get(self, url: str, token: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        if not url.startswith("http"):
            url = f"{SPOTIFY_API_URL}{url}"
        return await self.http_client.get(url, params=params, headers={"Authorization": f"Bearer {token}"})

    async def _api_get_json(self, url: str, token: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET that forwards the upstream status on failure"""
        response = await self._api_get(url, token, params)
        if response.status_code >= 400:
            logger.error(f"Spotify API error on {url}: {response.status_code}")
            raise HTTPException(status_code=response.status_code, detail="Erreur Spotify")
        return response.json()

    # Catalogue

    async def search_tracks(self, query: str, limit: int = 10) -> List[SpotifySong]:
        if not query or not query.strip():
            return []
        token = await self.get_client_token()
        try:
            response = await self._api_get("/search", token, {"q": query, "type": "track", "limit": limit})
        except httpx.HTTPError as e:
            logger.error(f"Spotify search error: {e}")
            raise HTTPException(status_code=500, detail="Échec de la recherche Spotify")
        if response.status_code >= 400:
            logger.error(f"Spotify search failed: {response.status_code}")
            raise HTTPException(status_code=500, detail="Échec de la recherche Spotify")
        items = (response.json().get("tracks") or {}).get("items") or []
        return [format_track_for_song(track) for track in items]

    async def get_audio_features(self, spotify_id: str) -> Optional[Dict[str, Any]]:
        token = await self.get_client_token()
        try:
            response = await self._api_get(f"/audio-features/{spotify_id}", token)
        except httpx.HTTPError as e:
            logger.error(f"Spotify audio features error: {e}")
            return None
        if response.status_code >= 400:
            logger.warning(f"No audio features for {spotify_id}: {response.status_code}")
            return None
        return response.json()

    # User library

    async def list_playlists(self, user_id: str) -> Dict[str, Any]:
        token = await self._require_user_token(user_id)
        return await self._api_get_json("/me/playlists", token, {"limit": 50})

    async def playlist_tracks(self, user_id: str, playlist_id: str) -> SpotifyTrackList:
        """Every track of the playlist; later pages are best effort"""
        token = await self._require_user_token(user_id)
        page = await self._api_get_json(f"/playlists/{playlist_id}/tracks", token, {"limit": 100})
        tracks = [format_track_for_song(item["track"]) for item in page.get("items") or [] if item.get("track")]

        next_url = page.get("next")
        while next_url:
            response = await self._api_get(next_url, token)
            if response.status_code >= 400:
                logger.warning(f"Stopped paging playlist {playlist_id}: {response.status_code}")
                break
            page = response.json()
            tracks.extend(
                format_track_for_song(item["track"]) for item in page.get("items") or [] if item.get("track")
            )
            next_url = page.get("next")
        return SpotifyTrackList(tracks=tracks, total=len(tracks))

    async def recently_played(self, user_id: str) -> SpotifyTrackList:
        token = await self._require_user_token(user_id)
        data = await self._api_get_json("/me/player/recently-played", token, {"limit": 20})
        return SpotifyTrackList(tracks=dedupe_recently_played(data.get("items") or []))

    async def import_playlist(self, user_id: str, playlist_id: str, track_ids: List[str]) -> PlaylistImportResult:
        """Add the selected playlist tracks to the library, skipping those already there"""
        existing = self.supabase.table("songs")\
            .select("spotify_id")\
            .eq("user_id", user_id)\
            .execute().data or []
        existing_ids = {s["spotify_id"] for s in existing if s.get("spotify_id")}

        playlist = await self.playlist_tracks(user_id, playlist_id)
        selected = set(track_ids)

        imported = 0
        skipped = 0
        for track in playlist.tracks:
            if track.spotify_id not in selected:
                continue
            if track.spotify_id in existing_ids:
                skipped += 1
                continue
            try:
                self.supabase.table("songs").insert({
                    **track.model_dump(),
                    "user_id": user_id,
                    "status": "want_to_learn",
                    "progress_percent": 0,
                    "tuning": "Standard",
                    "capo_position": 0,
                }).execute()
                imported += 1
                existing_ids.add(track.spotify_id)
            except Exception as e:
                logger.error(f"Error importing track {track.spotify_id}: {e}")
                skipped += 1
        return PlaylistImportResult(success=True, imported=imported, skipped=skipped)

    async def song_audio_features(self, song_id: str, user_id: str) -> SongAudioFeatures:
        """BPM, key and energy of a library song, cached on the song for a week"""
        result = self.supabase.table("songs")\
            .select("spotify_id, spotify_bpm, spotify_key, spotify_energy, spotify_audio_fetched_at")\
            .eq("id", song_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Morceau introuvable")
        song = result.data[0]
        if not song.get("spotify_id"):
            raise HTTPException(status_code=400, detail="Aucun identifiant Spotify associé à ce morceau")

        fetched_at = parse_timestamp(song.get("spotify_audio_fetched_at"))
        if fetched_at and song.get("spotify_bpm") is not None \
                and fetched_at > datetime.now(timezone.utc) - AUDIO_FEATURES_TTL:
            return SongAudioFeatures(
                bpm=song["spotify_bpm"],
                # the mode is not cached
                key=format_key_name(song.get("spotify_key"), 1),
                energy=song.get("spotify_energy") or 0,
                fetched_at=song["spotify_audio_fetched_at"],
            )

        features = await self.get_audio_features(song["spotify_id"])
        if not features:
            raise HTTPException(status_code=502, detail="Impossible de récupérer les données audio")

        now = datetime.now(timezone.utc).isoformat()
        self.supabase.table("songs")\
            .update({
                "spotify_bpm": features.get("tempo"),
                "spotify_key": features.get("key"),
                "spotify_energy": features.get("energy"),
                "spotify_audio_fetched_at": now,
            })\
            .eq("id", song_id)\
            .eq("user_id", user_id)\
            .execute()
        return SongAudioFeatures(
            bpm=features.get("tempo") or 0,
            key=format_key_name(features.get("key"), features.get("mode")),
            energy=features.get("energy") or 0,
            fetched_at=now,
        )
