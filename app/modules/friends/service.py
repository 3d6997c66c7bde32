import logging
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.config.plans_config import get_free_limit
from app.core.dependencies import is_free_plan, get_friendship
from app.modules.feed.service import ActivityService, PROFILE_SUMMARY_FIELDS
from app.modules.challenges.service import display_name
from app.modules.notifications.service import PushNotifier
from app.modules.friends.schemas import UserSearchResult, Friend, FriendRequest, FriendsLimitInfo, FriendProfile

logger = logging.getLogger(__name__)


class FriendService:
    def __init__(self, supabase: Client, notifier: Optional[PushNotifier] = None):
        self.supabase = supabase
        self.notifier = notifier
        self.activities = ActivityService(supabase)

    def _notify(self, user_id: str, title: str, body: str, notification_type: str):
        if self.notifier is not None:
            self.notifier.notify(user_id, title, body, notification_type, url="/friends")

    def _get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _relations(self, user_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("friendships")\
            .select("*")\
            .or_(f"requester_id.eq.{user_id},addressee_id.eq.{user_id}")\
            .execute()
        return result.data or []

    def count_friends(self, user_id: str) -> int:
        result = self.supabase.table("friendships")\
            .select("id", count="exact")\
            .eq("status", "accepted")\
            .or_(f"requester_id.eq.{user_id},addressee_id.eq.{user_id}")\
            .execute()
        return result.count or 0

    def _check_friend_limit(self, user_id: str):
        if not is_free_plan(user_id, self.supabase):
            return
        limit = get_free_limit("friends")
        if self.count_friends(user_id) >= limit:
            raise HTTPException(
                status_code=403,
                detail=f"Tu as atteint la limite de {limit} amis. Passe en Pro pour en ajouter plus !"
            )

    def search_users(self, query: str, user_id: str) -> List[UserSearchResult]:
        """Profiles whose username matches, with the caller's relation to each"""
        if not query.strip():
            return []
        profiles = self.supabase.table("profiles")\
            .select("id, username, display_name, avatar_url")\
            .ilike("username", f"%{query.strip()}%")\
            .limit(10)\
            .execute().data or []

        statuses = {}
        for relation in self._relations(user_id):
            other_id = relation["addressee_id"] if relation["requester_id"] == user_id else relation["requester_id"]
            statuses[other_id] = relation["status"]

        return [
            UserSearchResult(
                **profile,
                friendshipStatus="self" if profile["id"] == user_id else statuses.get(profile["id"], "none")
            )
            for profile in profiles
        ]

    def send_request(self, addressee_id: str, user_id: str) -> Dict[str, Any]:
        if addressee_id == user_id:
            raise HTTPException(status_code=400, detail="Tu ne peux pas t'ajouter toi-même")
        self._check_friend_limit(user_id)

        existing = get_friendship(user_id, addressee_id, self.supabase)
        if existing:
            if existing["status"] == "accepted":
                raise HTTPException(status_code=400, detail="Vous êtes déjà amis")
            if existing["status"] == "pending":
                raise HTTPException(status_code=400, detail="Une demande est déjà en attente")
            raise HTTPException(status_code=400, detail="Impossible d'envoyer une demande")

        try:
            result = self.supabase.table("friendships").insert({
                "requester_id": user_id,
                "addressee_id": addressee_id,
                "status": "pending",
            }).execute()
        except Exception as e:
            logger.error(f"Error sending friend request: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'envoi de la demande")

        sender = display_name(self._get_profile(user_id), "Quelqu'un")
        self._notify(addressee_id, "Nouvelle demande d'ami", f"{sender} veut devenir ton ami !", "friend_request")
        return result.data[0] if result.data else {}

    def accept_request(self, friendship_id: str, user_id: str) -> Dict[str, Any]:
        """Accept a pending request addressed to the caller"""
        self._check_friend_limit(user_id)
        pending = self.supabase.table("friendships")\
            .select("*")\
            .eq("id", friendship_id)\
            .eq("addressee_id", user_id)\
            .eq("status", "pending")\
            .limit(1)\
            .execute()
        if not pending.data:
            raise HTTPException(status_code=404, detail="Demande non trouvée")
        friendship = pending.data[0]

        try:
            result = self.supabase.table("friendships")\
                .update({"status": "accepted"})\
                .eq("id", friendship_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error accepting friend request: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'acceptation")

        requester = self._get_profile(friendship["requester_id"])
        self.activities.create_activity(
            user_id,
            "friend_added",
            friendship["requester_id"],
            {"friend_username": requester.get("username") if requester else None}
        )
        accepter = display_name(self._get_profile(user_id), "Quelqu'un")
        self._notify(
            friendship["requester_id"],
            "Demande acceptée !",
            f"{accepter} a accepté ta demande d'ami",
            "friend_accepted"
        )
        return result.data[0] if result.data else {**friendship, "status": "accepted"}

    def reject_request(self, friendship_id: str, user_id: str) -> bool:
        result = self.supabase.table("friendships")\
            .delete()\
            .eq("id", friendship_id)\
            .eq("addressee_id", user_id)\
            .eq("status", "pending")\
            .execute()
        return bool(result.data)

    def remove_friend(self, friendship_id: str, user_id: str) -> bool:
        result = self.supabase.table("friendships")\
            .delete()\
            .eq("id", friendship_id)\
            .eq("status", "accepted")\
            .or_(f"requester_id.eq.{user_id},addressee_id.eq.{user_id}")\
            .execute()
        return bool(result.data)

    def block_user(self, blocked_id: str, user_id: str) -> Dict[str, Any]:
        """Replace any relation with the user by a block owned by the caller"""
        if blocked_id == user_id:
            raise HTTPException(status_code=400, detail="Tu ne peux pas te bloquer toi-même")
        existing = get_friendship(user_id, blocked_id, self.supabase)
        if existing:
            self.supabase.table("friendships").delete().eq("id", existing["id"]).execute()
        try:
            result = self.supabase.table("friendships").insert({
                "requester_id": user_id,
                "addressee_id": blocked_id,
                "status": "blocked",
            }).execute()
        except Exception as e:
            logger.error(f"Error blocking user: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors du blocage")
        return result.data[0] if result.data else {}

    def _profiles(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not user_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select(PROFILE_SUMMARY_FIELDS)\
            .in_("id", list(set(user_ids)))\
            .execute()
        return {p["id"]: p for p in result.data or []}

    def list_friends(self, user_id: str) -> List[Friend]:
        result = self.supabase.table("friendships")\
            .select("*")\
            .eq("status", "accepted")\
            .or_(f"requester_id.eq.{user_id},addressee_id.eq.{user_id}")\
            .order("created_at", desc=True)\
            .execute()
        rows = result.data or []
        friend_ids = [r["addressee_id"] if r["requester_id"] == user_id else r["requester_id"] for r in rows]
        profiles = self._profiles(friend_ids)
        return [
            Friend(id=row["id"], profile=profiles.get(friend_id), since=row.get("created_at"))
            for row, friend_id in zip(rows, friend_ids)
        ]

    def list_pending_requests(self, user_id: str) -> List[FriendRequest]:
        result = self.supabase.table("friendships")\
            .select("*")\
            .eq("addressee_id", user_id)\
            .eq("status", "pending")\
            .order("created_at", desc=True)\
            .execute()
        rows = result.data or []
        profiles = self._profiles([r["requester_id"] for r in rows])
        return [
            FriendRequest(id=row["id"], requester=profiles.get(row["requester_id"]), created_at=row.get("created_at"))
            for row in rows
        ]

    def count_pending_requests(self, user_id: str) -> int:
        result = self.supabase.table("friendships")\
            .select("id", count="exact")\
            .eq("addressee_id", user_id)\
            .eq("status", "pending")\
            .execute()
        return result.count or 0

    def get_limit_info(self, user_id: str) -> FriendsLimitInfo:
        current = self.count_friends(user_id)
        if not is_free_plan(user_id, self.supabase):
            return FriendsLimitInfo(isLimited=False, current=current)
        return FriendsLimitInfo(isLimited=True, current=current, limit=get_free_limit("friends"))

    def get_friend_profile(self, friend_id: str, user_id: str) -> FriendProfile:
        """Full profile of an accepted friend: library, shared covers and counts"""
        friendship = get_friendship(user_id, friend_id, self.supabase)
        if not friendship or friendship["status"] != "accepted":
            raise HTTPException(status_code=404, detail="Ami non trouvé")
        profile = self._get_profile(friend_id)
        if not profile:
            raise HTTPException(status_code=404, detail="Profil non trouvé")

        songs = self.supabase.table("songs")\
            .select("*")\
            .eq("user_id", friend_id)\
            .order("created_at", desc=True)\
            .execute().data or []
        covers = self.supabase.table("covers")\
            .select("*")\
            .eq("user_id", friend_id)\
            .in_("visibility", ["friends", "public"])\
            .order("created_at", desc=True)\
            .execute().data or []
        songs_by_id = {s["id"]: s for s in songs}
        for cover in covers:
            cover["song"] = songs_by_id.get(cover.get("song_id"))

        return FriendProfile(
            profile=profile,
            songs=songs,
            covers=covers,
            friendship=friendship,
            stats={
                "totalSongs": len(songs),
                "masteredSongs": len([s for s in songs if s.get("status") == "mastered"]),
                "totalCovers": len(covers),
            }
        )
