import logging
from supabase import Client
from typing import List, Dict, Any
from fastapi import HTTPException
from app.modules.playlists.schemas import PlaylistCreate, PlaylistUpdate

logger = logging.getLogger(__name__)


class PlaylistService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _with_songs(self, playlist: Dict[str, Any]) -> Dict[str, Any]:
        """Attach the playlist's songs in position order"""
        links = self.supabase.table("playlist_songs")\
            .select("song_id, position")\
            .eq("playlist_id", playlist["id"])\
            .order("position")\
            .execute()
        positions = {link["song_id"]: link["position"] for link in links.data or []}
        songs = []
        if positions:
            songs_result = self.supabase.table("songs")\
                .select("*")\
                .in_("id", list(positions))\
                .execute()
            songs = sorted(songs_result.data or [], key=lambda s: positions.get(s["id"], 0))
        return {**playlist, "songs": songs, "song_count": len(positions)}

    def _get_owned(self, playlist_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("playlists")\
            .select("*")\
            .eq("id", playlist_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Playlist non trouvée")
        return result.data[0]

    def list_playlists(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table("playlists")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [self._with_songs(p) for p in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_playlist(self, playlist_id: str, user_id: str) -> Dict[str, Any]:
        return self._with_songs(self._get_owned(playlist_id, user_id))

    def create_playlist(self, data: PlaylistCreate, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("playlists").insert({
            **data.model_dump(),
            "user_id": user_id,
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la création")
        return result.data[0]

    def update_playlist(self, playlist_id: str, data: PlaylistUpdate, user_id: str) -> Dict[str, Any]:
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return self._get_owned(playlist_id, user_id)
        result = self.supabase.table("playlists")\
            .update(update_data)\
            .eq("id", playlist_id)\
            .eq("user_id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Playlist non trouvée")
        return result.data[0]

    def delete_playlist(self, playlist_id: str, user_id: str) -> bool:
        result = self.supabase.table("playlists")\
            .delete()\
            .eq("id", playlist_id)\
            .eq("user_id", user_id)\
            .execute()
        return bool(result.data)

    def add_song(self, playlist_id: str, song_id: str, user_id: str) -> Dict[str, Any]:
        """Append a song after the current last position"""
        self._get_owned(playlist_id, user_id)
        duplicate = self.supabase.table("playlist_songs")\
            .select("id")\
            .eq("playlist_id", playlist_id)\
            .eq("song_id", song_id)\
            .limit(1)\
            .execute()
        if duplicate.data:
            raise HTTPException(status_code=400, detail="Ce morceau est déjà dans cette playlist")

        last = self.supabase.table("playlist_songs")\
            .select("position")\
            .eq("playlist_id", playlist_id)\
            .order("position", desc=True)\
            .limit(1)\
            .execute()
        next_position = last.data[0]["position"] + 1 if last.data else 0

        try:
            result = self.supabase.table("playlist_songs").insert({
                "playlist_id": playlist_id,
                "song_id": song_id,
                "position": next_position,
            }).execute()
        except Exception as e:
            if "23505" in str(e):
                raise HTTPException(status_code=400, detail="Ce morceau est déjà dans cette playlist")
            logger.error(f"Error adding song to playlist: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout")
        return result.data[0] if result.data else {}

    def remove_song(self, playlist_id: str, song_id: str, user_id: str) -> bool:
        self._get_owned(playlist_id, user_id)
        result = self.supabase.table("playlist_songs")\
            .delete()\
            .eq("playlist_id", playlist_id)\
            .eq("song_id", song_id)\
            .execute()
        return bool(result.data)

    def playlists_for_song(self, song_id: str, user_id: str) -> List[Dict[str, Any]]:
        links = self.supabase.table("playlist_songs")\
            .select("playlist_id")\
            .eq("song_id", song_id)\
            .execute()
        playlist_ids = [link["playlist_id"] for link in links.data or []]
        if not playlist_ids:
            return []
        result = self.supabase.table("playlists")\
            .select("*")\
            .in_("id", playlist_ids)\
            .eq("user_id", user_id)\
            .order("name")\
            .execute()
        return result.data or []
