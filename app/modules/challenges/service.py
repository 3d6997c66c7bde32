import logging
from datetime import datetime, timedelta, timezone
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.core.dependencies import get_friendship
from app.modules.challenges.schemas import ChallengeCreate
from app.modules.notifications.service import PushNotifier

logger = logging.getLogger(__name__)

OPEN_STATUSES = ["pending", "active"]
PROFILE_SUMMARY_FIELDS = "id, username, display_name, avatar_url, plan"


def display_name(profile: Optional[Dict[str, Any]], fallback: str = "Un ami") -> str:
    if not profile:
        return fallback
    return profile.get("display_name") or profile.get("username") or fallback


def pick_winner(challenge_type: str, progress_rows: List[Dict[str, Any]]) -> Optional[str]:
    """Winner of a timed challenge from both participants' progress; None on a draw"""
    if len(progress_rows) != 2:
        return None
    field = "practice_minutes" if challenge_type == "practice_time" else "streak_days"
    if challenge_type not in ("practice_time", "streak"):
        return None
    first, second = progress_rows
    first_score = first.get(field) or 0
    second_score = second.get(field) or 0
    if first_score > second_score:
        return first["user_id"]
    if second_score > first_score:
        return second["user_id"]
    return None


class ChallengeService:
    def __init__(self, supabase: Client, notifier: Optional[PushNotifier] = None):
        self.supabase = supabase
        self.notifier = notifier

    def _notify(self, user_id: str, title: str, body: str, notification_type: str):
        if self.notifier is not None:
            self.notifier.notify(user_id, title, body, notification_type, url="/challenges")

    def _get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select(PROFILE_SUMMARY_FIELDS)\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _open_challenge_between(self, user_id: str, other_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("challenges")\
            .select("*")\
            .in_("status", OPEN_STATUSES)\
            .or_(
                f"and(creator_id.eq.{user_id},challenger_id.eq.{other_id}),"
                f"and(creator_id.eq.{other_id},challenger_id.eq.{user_id})"
            )\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def create_challenge(self, data: ChallengeCreate, user_id: str) -> Dict[str, Any]:
        """Challenge a friend; both participants get a progress row"""
        if data.challenger_id == user_id:
            raise HTTPException(status_code=400, detail="Tu ne peux pas te défier toi-même")

        friendship = get_friendship(user_id, data.challenger_id, self.supabase)
        if not friendship or friendship.get("status") != "accepted":
            raise HTTPException(status_code=403, detail="Tu dois être ami avec cette personne pour la défier")

        if self._open_challenge_between(user_id, data.challenger_id):
            raise HTTPException(status_code=409, detail="Un défi est déjà en cours avec cette personne")

        song = None
        if data.challenge_type == "song_mastery":
            if not data.song_id:
                raise HTTPException(status_code=400, detail="Un morceau est requis pour ce type de défi")
            song_result = self.supabase.table("songs")\
                .select("title, artist, cover_url")\
                .eq("id", data.song_id)\
                .limit(1)\
                .execute()
            if not song_result.data:
                raise HTTPException(status_code=404, detail="Morceau non trouvé")
            song = song_result.data[0]

        result = self.supabase.table("challenges").insert({
            "creator_id": user_id,
            "challenger_id": data.challenger_id,
            "challenge_type": data.challenge_type,
            "duration_days": data.duration_days,
            "song_id": data.song_id if song else None,
            "song_title": song["title"] if song else None,
            "song_artist": song["artist"] if song else None,
            "song_cover_url": song.get("cover_url") if song else None,
            "status": "pending",
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la création du défi")
        challenge = result.data[0]

        try:
            self.supabase.table("challenge_progress").insert([
                {"challenge_id": challenge["id"], "user_id": user_id},
                {"challenge_id": challenge["id"], "user_id": data.challenger_id},
            ]).execute()
        except Exception as e:
            logger.error(f"Error creating challenge progress: {e}")
            self.supabase.table("challenges").delete().eq("id", challenge["id"]).execute()
            raise HTTPException(status_code=500, detail="Erreur lors de la création du défi")

        labels = {
            "practice_time": "temps de pratique",
            "streak": "streak de jours",
            "song_mastery": f"maîtrise de \"{song['title']}\"" if song else "maîtrise",
        }
        creator_name = display_name(self._get_profile(user_id))
        self._notify(
            data.challenger_id,
            "Nouveau défi !",
            f"{creator_name} te lance un défi de {labels[data.challenge_type]} !",
            "challenge_created"
        )
        return challenge

    def _get_pending_for_challenger(self, challenge_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("challenges")\
            .select("*")\
            .eq("id", challenge_id)\
            .eq("challenger_id", user_id)\
            .eq("status", "pending")\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Défi non trouvé")
        return result.data[0]

    def accept_challenge(self, challenge_id: str, user_id: str) -> Dict[str, Any]:
        challenge = self._get_pending_for_challenger(challenge_id, user_id)
        starts_at = datetime.now(timezone.utc)
        ends_at = starts_at + timedelta(days=challenge["duration_days"])
        result = self.supabase.table("challenges")\
            .update({
                "status": "active",
                "starts_at": starts_at.isoformat(),
                "ends_at": ends_at.isoformat(),
            })\
            .eq("id", challenge_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'acceptation")

        creator = self._get_profile(challenge["creator_id"])
        self.supabase.table("activities").insert({
            "user_id": user_id,
            "type": "challenge_accepted",
            "reference_id": challenge_id,
            "metadata": {
                "challenge_type": challenge["challenge_type"],
                "opponent_name": display_name(creator),
            },
        }).execute()

        self._notify(
            challenge["creator_id"],
            "Défi accepté !",
            f"{display_name(self._get_profile(user_id))} a accepté ton défi. C'est parti !",
            "challenge_accepted"
        )
        return result.data[0]

    def decline_challenge(self, challenge_id: str, user_id: str) -> bool:
        challenge = self._get_pending_for_challenger(challenge_id, user_id)
        self.supabase.table("challenges")\
            .update({"status": "declined"})\
            .eq("id", challenge_id)\
            .execute()
        self._notify(
            challenge["creator_id"],
            "Défi refusé",
            f"{display_name(self._get_profile(user_id))} a refusé ton défi",
            "challenge_created"
        )
        return True

    def cancel_challenge(self, challenge_id: str, user_id: str) -> bool:
        """Creator withdraws a challenge that has not been accepted yet"""
        result = self.supabase.table("challenges")\
            .update({"status": "cancelled"})\
            .eq("id", challenge_id)\
            .eq("creator_id", user_id)\
            .eq("status", "pending")\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Défi non trouvé")
        return True

    def list_challenges(self, user_id: str) -> List[Dict[str, Any]]:
        """All challenges involving the caller with both profiles, progress rows and song"""
        try:
            result = self.supabase.table("challenges")\
                .select("*")\
                .or_(f"creator_id.eq.{user_id},challenger_id.eq.{user_id}")\
                .order("created_at", desc=True)\
                .execute()
            challenges = result.data or []
            if not challenges:
                return []

            challenge_ids = [c["id"] for c in challenges]
            progress_result = self.supabase.table("challenge_progress")\
                .select("*")\
                .in_("challenge_id", challenge_ids)\
                .execute()
            progress = {}
            for row in progress_result.data or []:
                progress.setdefault(row["challenge_id"], {})[row["user_id"]] = row

            participant_ids = {c["creator_id"] for c in challenges} | {c["challenger_id"] for c in challenges}
            profiles_result = self.supabase.table("profiles")\
                .select(PROFILE_SUMMARY_FIELDS)\
                .in_("id", list(participant_ids))\
                .execute()
            profiles = {p["id"]: p for p in profiles_result.data or []}

            song_ids = [c["song_id"] for c in challenges if c.get("song_id")]
            songs = {}
            if song_ids:
                songs_result = self.supabase.table("songs").select("*").in_("id", song_ids).execute()
                songs = {s["id"]: s for s in songs_result.data or []}

            enriched = []
            for challenge in challenges:
                by_user = progress.get(challenge["id"], {})
                enriched.append({
                    **challenge,
                    "creator": profiles.get(challenge["creator_id"]),
                    "challenger": profiles.get(challenge["challenger_id"]),
                    "creator_progress": by_user.get(challenge["creator_id"]),
                    "challenger_progress": by_user.get(challenge["challenger_id"]),
                    "song": songs.get(challenge.get("song_id")),
                })
            return enriched
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def count_pending(self, user_id: str) -> int:
        result = self.supabase.table("challenges")\
            .select("id", count="exact")\
            .eq("challenger_id", user_id)\
            .eq("status", "pending")\
            .execute()
        return result.count or 0

    def get_active_with_friend(self, user_id: str, friend_id: str) -> Optional[Dict[str, Any]]:
        challenge = self._open_challenge_between(user_id, friend_id)
        if not challenge:
            return None
        return {
            **challenge,
            "creator": self._get_profile(challenge["creator_id"]),
            "challenger": self._get_profile(challenge["challenger_id"]),
            "creator_progress": None,
            "challenger_progress": None,
        }

    def _active_challenges(self, user_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("challenges")\
            .select("*")\
            .eq("status", "active")\
            .or_(f"creator_id.eq.{user_id},challenger_id.eq.{user_id}")\
            .execute()
        return result.data or []

    def _get_progress(self, challenge_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("challenge_progress")\
            .select("*")\
            .eq("challenge_id", challenge_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def record_practice(self, user_id: str, minutes: int, today: Optional[datetime] = None):
        """Credit a practice session to the caller's active practice_time and streak challenges"""
        if not minutes:
            return
        now = today or datetime.now(timezone.utc)
        today_str = now.date().isoformat()
        yesterday_str = (now - timedelta(days=1)).date().isoformat()
        try:
            for challenge in self._active_challenges(user_id):
                progress = self._get_progress(challenge["id"], user_id)
                if not progress:
                    continue
                updates = {}
                if challenge["challenge_type"] == "practice_time":
                    updates["practice_minutes"] = (progress.get("practice_minutes") or 0) + minutes
                elif challenge["challenge_type"] == "streak":
                    last_date = progress.get("streak_last_date")
                    if last_date == yesterday_str:
                        updates = {"streak_days": (progress.get("streak_days") or 0) + 1, "streak_last_date": today_str}
                    elif last_date != today_str:
                        updates = {"streak_days": 1, "streak_last_date": today_str}
                if updates:
                    self.supabase.table("challenge_progress")\
                        .update(updates)\
                        .eq("id", progress["id"])\
                        .execute()
        except Exception as e:
            logger.error(f"Error updating challenge progress: {e}")

    def record_song_mastered(self, user_id: str, song_id: str):
        """First participant to master the challenge song wins immediately"""
        try:
            for challenge in self._active_challenges(user_id):
                if challenge["challenge_type"] != "song_mastery" or challenge.get("song_id") != song_id:
                    continue
                progress = self._get_progress(challenge["id"], user_id)
                if not progress or progress.get("song_mastered_at"):
                    continue
                self.supabase.table("challenge_progress")\
                    .update({"song_mastered_at": datetime.now(timezone.utc).isoformat()})\
                    .eq("id", progress["id"])\
                    .execute()
                self.complete_challenge(challenge["id"], user_id)
        except Exception as e:
            logger.error(f"Error updating song mastery challenge: {e}")

    def complete_challenge(self, challenge_id: str, winner_id: Optional[str] = None):
        """Close a challenge, pick the winner if not given and notify both sides"""
        result = self.supabase.table("challenges")\
            .select("*")\
            .eq("id", challenge_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return
        challenge = result.data[0]

        if winner_id is None:
            progress_result = self.supabase.table("challenge_progress")\
                .select("*")\
                .eq("challenge_id", challenge_id)\
                .execute()
            winner_id = pick_winner(challenge["challenge_type"], progress_result.data or [])

        self.supabase.table("challenges")\
            .update({"status": "completed", "winner_id": winner_id})\
            .eq("id", challenge_id)\
            .execute()

        creator = self._get_profile(challenge["creator_id"])
        challenger = self._get_profile(challenge["challenger_id"])

        if winner_id:
            creator_won = winner_id == challenge["creator_id"]
            winner_name = display_name(creator if creator_won else challenger)
            loser_id = challenge["challenger_id"] if creator_won else challenge["creator_id"]
            self._notify(winner_id, "Tu as gagné ! 🏆", "Félicitations, tu as remporté le défi !", "challenge_won")
            self._notify(
                loser_id,
                "Défi terminé",
                f"{winner_name} a remporté le défi. La prochaine sera la bonne !",
                "challenge_completed"
            )
            self.supabase.table("activities").insert({
                "user_id": winner_id,
                "type": "challenge_won",
                "reference_id": challenge_id,
                "metadata": {
                    "challenge_type": challenge["challenge_type"],
                    "opponent_name": display_name(challenger if creator_won else creator),
                },
            }).execute()
        else:
            for participant_id in (challenge["creator_id"], challenge["challenger_id"]):
                self._notify(
                    participant_id,
                    "Défi terminé - Égalité !",
                    "Le défi s'est terminé sur une égalité parfaite !",
                    "challenge_completed"
                )
        logger.info(f"Challenge {challenge_id} completed, winner: {winner_id}")

    def get_expired_challenges(self) -> List[Dict[str, Any]]:
        result = self.supabase.table("challenges")\
            .select("id")\
            .eq("status", "active")\
            .lt("ends_at", datetime.now(timezone.utc).isoformat())\
            .execute()
        return result.data or []

    def get_leaderboard(self, user_id: str, period: str = "week") -> List[Dict[str, Any]]:
        try:
            result = self.supabase.rpc("get_practice_leaderboard", {
                "p_user_id": user_id,
                "p_period": period,
                "p_limit": 10,
            }).execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching leaderboard: {e}")
            return []
