import logging
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.core.dependencies import get_friendship
from app.modules.profiles.schemas import (
    ProfileUpdate, FavoriteSongSet, FavoriteAlbumSet, ProfileStats, PublicProfileResponse, AvatarResponse
)

logger = logging.getLogger(__name__)

AVATARS_BUCKET = "avatars"
MAX_AVATAR_SIZE = 2 * 1024 * 1024
MAX_BIO_LENGTH = 160


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _count(self, table: str, **filters) -> int:
        query = self.supabase.table(table).select("id", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        return query.execute().count or 0

    def _count_friends(self, user_id: str) -> int:
        result = self.supabase.table("friendships")\
            .select("id", count="exact")\
            .eq("status", "accepted")\
            .or_(f"requester_id.eq.{user_id},addressee_id.eq.{user_id}")\
            .execute()
        return result.count or 0

    def _favorite_songs(self, user_id: str) -> List[Dict[str, Any]]:
        favorites = self.supabase.table("favorite_songs")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("position")\
            .execute().data or []
        song_ids = [f["song_id"] for f in favorites]
        songs = {}
        if song_ids:
            result = self.supabase.table("songs").select("*").in_("id", song_ids).execute()
            songs = {s["id"]: s for s in result.data or []}
        return [{**f, "song": songs.get(f["song_id"])} for f in favorites]

    def _favorite_albums(self, user_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("favorite_albums")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("position")\
            .execute()
        return result.data or []

    def get_my_profile(self, user_id: str) -> Dict[str, Any]:
        """Own profile with favourites and library/social counts"""
        profile = self._get_profile(user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="Profil non trouvé")
        return {
            **profile,
            "favorite_songs": self._favorite_songs(user_id),
            "favorite_albums": self._favorite_albums(user_id),
            "stats": ProfileStats(
                totalSongs=self._count("songs", user_id=user_id),
                masteredSongs=self._count("songs", user_id=user_id, status="mastered"),
                totalCovers=self._count("covers", user_id=user_id),
                friendsCount=self._count_friends(user_id),
            ).model_dump(),
        }

    def update_profile(self, data: ProfileUpdate, user_id: str) -> Dict[str, Any]:
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("bio") and len(update_data["bio"]) > MAX_BIO_LENGTH:
            raise HTTPException(status_code=400, detail="La bio ne peut pas dépasser 160 caractères")

        if update_data.get("username"):
            taken = self.supabase.table("profiles")\
                .select("id")\
                .eq("username", update_data["username"])\
                .neq("id", user_id)\
                .limit(1)\
                .execute()
            if taken.data:
                raise HTTPException(status_code=400, detail="Ce nom d'utilisateur est déjà pris")

        if not update_data:
            return self._get_profile(user_id) or {}
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la mise à jour")
        if not result.data:
            raise HTTPException(status_code=404, detail="Profil non trouvé")
        return result.data[0]

    def upload_avatar(
        self,
        user_id: str,
        filename: Optional[str],
        content_type: Optional[str],
        content: Optional[bytes]
    ) -> AvatarResponse:
        """Replace the caller's avatar and point profiles.avatar_url at it"""
        if content is None:
            raise HTTPException(status_code=400, detail="Aucun fichier fourni")
        if not content_type or not content_type.startswith("image/"):
            raise HTTPException(status_code=400, detail="Le fichier doit être une image")
        if len(content) > MAX_AVATAR_SIZE:
            raise HTTPException(status_code=400, detail="L'image ne doit pas dépasser 2MB")

        extension = filename.rsplit(".", 1)[-1] if filename and "." in filename else "png"
        path = f"{user_id}/avatar.{extension}"
        bucket = self.supabase.storage.from_(AVATARS_BUCKET)

        try:
            existing = bucket.list(user_id) or []
            if existing:
                bucket.remove([f"{user_id}/{f['name']}" for f in existing])
            bucket.upload(path, content, {
                "content-type": content_type,
                "cache-control": "3600",
                "upsert": "true",
            })
            public_url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Avatar upload error: {e}")
            raise HTTPException(status_code=500, detail=f"Erreur lors de l'upload: {e}")

        result = self.supabase.table("profiles")\
            .update({"avatar_url": public_url})\
            .eq("id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la mise à jour du profil")
        return AvatarResponse(url=public_url)

    def get_public_profile(self, profile_id: str, viewer_id: str) -> PublicProfileResponse:
        """
        Another user's profile as the viewer may see it.

        Songs, favourites and counts are only returned to the owner, to anyone
        when the profile is public, and to accepted friends. Covers are
        filtered by their own visibility.
        """
        profile = self._get_profile(profile_id)
        if not profile:
            raise HTTPException(status_code=404, detail="Profil non trouvé")

        is_owner = viewer_id == profile_id
        friendship_status = "self" if is_owner else "none"
        if not is_owner:
            friendship = get_friendship(viewer_id, profile_id, self.supabase)
            if friendship:
                friendship_status = friendship["status"]
        is_friend = friendship_status == "accepted"

        response = PublicProfileResponse(
            profile=profile,
            stats=ProfileStats(),
            friendship_status=friendship_status,
            is_friend=is_friend
        )

        if is_owner or not profile.get("is_private") or is_friend:
            response.favorite_songs = self._favorite_songs(profile_id)
            response.favorite_albums = self._favorite_albums(profile_id)
            response.recent_songs = self.supabase.table("songs")\
                .select("*")\
                .eq("user_id", profile_id)\
                .order("created_at", desc=True)\
                .limit(6)\
                .execute().data or []
            response.stats.totalSongs = self._count("songs", user_id=profile_id)
            response.stats.masteredSongs = self._count("songs", user_id=profile_id, status="mastered")

        if is_owner:
            visibility = ["public", "friends", "private"]
        elif is_friend:
            visibility = ["public", "friends"]
        else:
            visibility = ["public"]
        covers = self.supabase.table("covers")\
            .select("*", count="exact")\
            .eq("user_id", profile_id)\
            .in_("visibility", visibility)\
            .order("created_at", desc=True)\
            .limit(6)\
            .execute()
        recent_covers = covers.data or []
        song_ids = list({c["song_id"] for c in recent_covers if c.get("song_id")})
        if song_ids:
            songs = self.supabase.table("songs").select("*").in_("id", song_ids).execute().data or []
            by_id = {s["id"]: s for s in songs}
            for cover in recent_covers:
                cover["song"] = by_id.get(cover.get("song_id"))
        response.recent_covers = recent_covers
        response.stats.totalCovers = covers.count or 0
        return response

    def set_favorite_song(self, data: FavoriteSongSet, user_id: str) -> Dict[str, Any]:
        song = self.supabase.table("songs")\
            .select("id")\
            .eq("id", data.song_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not song.data:
            raise HTTPException(status_code=404, detail="Morceau non trouvé")
        try:
            result = self.supabase.table("favorite_songs")\
                .upsert({
                    "user_id": user_id,
                    "song_id": data.song_id,
                    "position": data.position,
                }, on_conflict="user_id,position")\
                .execute()
        except Exception as e:
            logger.error(f"Error setting favorite song: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout aux favoris")
        return result.data[0] if result.data else {}

    def remove_favorite_song(self, position: int, user_id: str) -> bool:
        result = self.supabase.table("favorite_songs")\
            .delete()\
            .eq("user_id", user_id)\
            .eq("position", position)\
            .execute()
        return bool(result.data)

    def set_favorite_album(self, data: FavoriteAlbumSet, user_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("favorite_albums")\
                .upsert({**data.model_dump(), "user_id": user_id}, on_conflict="user_id,position")\
                .execute()
        except Exception as e:
            logger.error(f"Error setting favorite album: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout aux favoris")
        return result.data[0] if result.data else {}

    def remove_favorite_album(self, position: int, user_id: str) -> bool:
        result = self.supabase.table("favorite_albums")\
            .delete()\
            .eq("user_id", user_id)\
            .eq("position", position)\
            .execute()
        return bool(result.data)
