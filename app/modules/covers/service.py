import logging
import re
import time
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.config.plans_config import get_free_limit
from app.core.dependencies import is_free_plan
from app.modules.feed.service import ActivityService
from app.modules.covers.schemas import CoverCreate, CoverUpdate, CoverQuota, CoverUploadResponse

logger = logging.getLogger(__name__)

COVERS_BUCKET = "covers"
MAX_FILE_SIZE = 200 * 1024 * 1024
ALLOWED_VIDEO_TYPES = ["video/mp4", "video/webm", "video/quicktime"]
ALLOWED_AUDIO_TYPES = ["audio/mpeg", "audio/wav", "audio/webm"]

_STORAGE_PATH_RE = re.compile(r"/storage/v1/object/public/covers/(.+)$")


def extract_storage_path(url: Optional[str]) -> Optional[str]:
    """Object path inside the covers bucket for one of its public URLs"""
    if not url:
        return None
    match = _STORAGE_PATH_RE.search(url)
    return match.group(1) if match else None


class CoverService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.activities = ActivityService(supabase)

    def _attach_songs(self, covers: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        song_ids = list({c["song_id"] for c in covers if c.get("song_id")})
        songs = {}
        if song_ids:
            result = self.supabase.table("songs").select("*").in_("id", song_ids).execute()
            songs = {s["id"]: s for s in result.data or []}
        for cover in covers:
            cover["song"] = songs.get(cover.get("song_id"))
        return covers

    def list_covers(self, user_id: str) -> List[Dict[str, Any]]:
        """Caller's covers, newest first, with their song"""
        try:
            result = self.supabase.table("covers")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return self._attach_songs(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_covers_for_song(self, song_id: str, user_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("covers")\
            .select("*")\
            .eq("song_id", song_id)\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .execute()
        return result.data or []

    def count_covers(self, user_id: str) -> int:
        result = self.supabase.table("covers")\
            .select("id", count="exact")\
            .eq("user_id", user_id)\
            .execute()
        return result.count or 0

    def get_quota(self, user_id: str) -> CoverQuota:
        if not is_free_plan(user_id, self.supabase):
            return CoverQuota(allowed=True)
        limit = get_free_limit("covers")
        current = self.count_covers(user_id)
        if current >= limit:
            return CoverQuota(
                allowed=False,
                reason=f"Tu as atteint la limite de {limit} covers. Passe en Pro pour en ajouter plus !",
                limit=limit,
                current=current
            )
        return CoverQuota(allowed=True, limit=limit, current=current)

    def create_cover(self, data: CoverCreate, user_id: str) -> Dict[str, Any]:
        quota = self.get_quota(user_id)
        if not quota.allowed:
            raise HTTPException(status_code=403, detail=quota.reason)

        song = self.supabase.table("songs")\
            .select("id")\
            .eq("id", data.song_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not song.data:
            raise HTTPException(status_code=404, detail="Morceau non trouvé")

        try:
            result = self.supabase.table("covers").insert({
                **data.model_dump(),
                "user_id": user_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating cover: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout du cover")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout du cover")

        cover = result.data[0]
        if data.visibility != "private":
            self.activities.create_activity(
                user_id, "cover_posted", cover["id"], {"visibility": data.visibility}
            )
        return cover

    def update_cover(self, cover_id: str, data: CoverUpdate, user_id: str) -> Dict[str, Any]:
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="Aucune modification")
        result = self.supabase.table("covers")\
            .update(update_data)\
            .eq("id", cover_id)\
            .eq("user_id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Cover non trouvé")
        return result.data[0]

    def delete_cover(self, cover_id: str, user_id: str) -> bool:
        """Delete the row, then its media and thumbnail from storage"""
        existing = self.supabase.table("covers")\
            .select("media_url, thumbnail_url")\
            .eq("id", cover_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not existing.data:
            raise HTTPException(status_code=404, detail="Cover non trouvé")
        cover = existing.data[0]

        try:
            self.supabase.table("covers")\
                .delete()\
                .eq("id", cover_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting cover: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la suppression")

        paths = [
            path for path in (
                extract_storage_path(cover.get("media_url")),
                extract_storage_path(cover.get("thumbnail_url")),
            ) if path
        ]
        if paths:
            try:
                self.supabase.storage.from_(COVERS_BUCKET).remove(paths)
            except Exception as e:
                logger.error(f"Error deleting storage files for cover {cover_id}: {e}")
        return True

    def upload_media(
        self,
        user_id: str,
        song_id: Optional[str],
        filename: Optional[str],
        content_type: Optional[str],
        content: Optional[bytes]
    ) -> CoverUploadResponse:
        if content is None or not song_id:
            raise HTTPException(status_code=400, detail="Fichier et songId requis")
        if len(content) > MAX_FILE_SIZE:
            raise HTTPException(status_code=400, detail="Le fichier dépasse la limite de 200 Mo")

        is_video = content_type in ALLOWED_VIDEO_TYPES
        is_audio = content_type in ALLOWED_AUDIO_TYPES
        if not is_video and not is_audio:
            raise HTTPException(
                status_code=400,
                detail="Type de fichier non supporté. Utilisez MP4, WebM, MOV, MP3, ou WAV."
            )

        extension = filename.rsplit(".", 1)[-1] if filename and "." in filename else ("mp4" if is_video else "mp3")
        path = f"{user_id}/{song_id}/{int(time.time() * 1000)}.{extension}"

        try:
            bucket = self.supabase.storage.from_(COVERS_BUCKET)
            bucket.upload(path, content, {
                "content-type": content_type,
                "cache-control": "3600",
                "upsert": "false",
            })
            public_url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Upload error: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'upload")

        return CoverUploadResponse(
            url=public_url,
            path=path,
            media_type="video" if is_video else "audio",
            file_size=len(content)
        )
