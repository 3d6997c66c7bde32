import logging
import httpx
from typing import Any, Dict, Optional
from fastapi import HTTPException
from app.config.settings import settings
from app.modules.audio.schemas import IdentifiedSong, IdentifyResponse

logger = logging.getLogger(__name__)

AUDD_API_URL = "https://api.audd.io/"


def map_audd_result(result: Dict[str, Any]) -> IdentifiedSong:
    spotify = result.get("spotify") or {}
    album = spotify.get("album") or {}
    images = album.get("images") or []
    return IdentifiedSong(
        title=result.get("title") or "Inconnu",
        artist=result.get("artist") or "Inconnu",
        album=result.get("album") or album.get("name"),
        release_date=result.get("release_date"),
        cover_url=images[0].get("url") if images else None,
        spotify_id=spotify.get("id"),
        preview_url=spotify.get("preview_url"),
    )


class AudioRecognitionService:
    """Song identification through AudD"""

    def __init__(self, http_client: httpx.AsyncClient, api_token: Optional[str] = None):
        self.http_client = http_client
        self.api_token = api_token if api_token is not None else settings.audd_api_token

    async def identify(self, audio: Optional[bytes]) -> IdentifyResponse:
        if not self.api_token:
            logger.error("AUDD_API_TOKEN not configured")
            raise HTTPException(status_code=500, detail="Service de reconnaissance non configuré")
        if not audio:
            raise HTTPException(status_code=400, detail="Aucun fichier audio fourni")

        try:
            response = await self.http_client.post(
                AUDD_API_URL,
                data={"api_token": self.api_token, "return": "spotify"},
                files={"file": ("recording.webm", audio, "audio/webm")},
            )
        except httpx.HTTPError as e:
            logger.error(f"AudD request failed: {e}")
            raise HTTPException(status_code=502, detail="Erreur du service de reconnaissance")

        if response.status_code >= 400:
            logger.error(f"AudD API error: {response.status_code}")
            raise HTTPException(status_code=502, detail="Erreur du service de reconnaissance")

        payload = response.json()
        if payload.get("status") == "error":
            logger.error(f"AudD error: {payload.get('error')}")
            raise HTTPException(status_code=502, detail="Erreur du service de reconnaissance")

        if not payload.get("result"):
            return IdentifyResponse(result=None, message="Morceau non reconnu")
        return IdentifyResponse(result=map_audd_result(payload["result"]))
