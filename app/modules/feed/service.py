import logging
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.core.dependencies import get_accepted_friend_ids, get_friendship

logger = logging.getLogger(__name__)

PROFILE_SUMMARY_FIELDS = "id, username, display_name, avatar_url, plan"


class ActivityService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_activity(
        self,
        user_id: str,
        activity_type: str,
        reference_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Append an entry to the user's activity stream. Failures are logged, never raised."""
        try:
            self.supabase.table("activities").insert({
                "user_id": user_id,
                "type": activity_type,
                "reference_id": reference_id,
                "metadata": metadata or {},
            }).execute()
            return True
        except Exception as e:
            logger.error(f"Error creating activity {activity_type}: {e}")
            return False

    def _profiles_by_id(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not user_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select(PROFILE_SUMMARY_FIELDS)\
            .in_("id", list(set(user_ids)))\
            .execute()
        return {p["id"]: p for p in result.data or []}

    def _first(self, query) -> Optional[Dict[str, Any]]:
        result = query.limit(1).execute()
        return result.data[0] if result.data else None

    def _enrich(self, activity: Dict[str, Any]) -> Dict[str, Any]:
        reference_id = activity.get("reference_id")
        if not reference_id:
            return activity
        activity_type = activity.get("type")
        if activity_type in ("song_added", "song_mastered"):
            song = self._first(self.supabase.table("songs").select("*").eq("id", reference_id))
            if song:
                activity["song"] = song
        elif activity_type == "cover_posted":
            cover = self._first(
                self.supabase.table("covers")
                .select("*")
                .eq("id", reference_id)
                .in_("visibility", ["friends", "public"])
            )
            if cover:
                cover["song"] = self._first(
                    self.supabase.table("songs").select("*").eq("id", cover.get("song_id"))
                )
                activity["cover"] = cover
        elif activity_type == "friend_added":
            friend = self._first(self.supabase.table("profiles").select("*").eq("id", reference_id))
            if friend:
                activity["friend"] = friend
        return activity

    def get_feed(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Friends' activities, newest first, with the referenced song / cover / profile attached"""
        try:
            friend_ids = get_accepted_friend_ids(user_id, self.supabase)
            if not friend_ids:
                return []
            result = self.supabase.table("activities")\
                .select("*")\
                .in_("user_id", friend_ids)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            activities = result.data or []
            profiles = self._profiles_by_id([a["user_id"] for a in activities])
            enriched = []
            for activity in activities:
                activity["user"] = profiles.get(activity["user_id"])
                enriched.append(self._enrich(activity))
            return enriched
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching feed: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_friend_recent_activities(self, user_id: str, friend_id: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Latest activities of one accepted friend; empty for anyone else"""
        friendship = get_friendship(user_id, friend_id, self.supabase)
        if not friendship or friendship.get("status") != "accepted":
            return []
        result = self.supabase.table("activities")\
            .select("*")\
            .eq("user_id", friend_id)\
            .order("created_at", desc=True)\
            .limit(limit)\
            .execute()
        profiles = self._profiles_by_id([friend_id])
        return [{**a, "user": profiles.get(friend_id)} for a in result.data or []]
