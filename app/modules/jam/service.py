import logging
from datetime import datetime, timezone
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.core.dependencies import check_band_member
from app.modules.feed.service import PROFILE_SUMMARY_FIELDS
from app.modules.challenges.service import display_name
from app.modules.notifications.service import PushNotifier
from app.modules.setlists.service import summarize_items
from app.modules.jam.schemas import OPEN_STATUSES, JamSessionCreate, JamSessionUpdate

logger = logging.getLogger(__name__)


class JamSessionService:
    def __init__(self, supabase: Client, notifier: Optional[PushNotifier] = None):
        self.supabase = supabase
        self.notifier = notifier

    def _profiles(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not user_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select(PROFILE_SUMMARY_FIELDS)\
            .in_("id", list(set(user_ids)))\
            .execute()
        return {p["id"]: p for p in result.data or []}

    def _get_session_row(self, session_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("jam_sessions")\
            .select("*")\
            .eq("id", session_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Session Jam non trouvee")
        session = result.data[0]
        check_band_member(session["band_id"], user_id, self.supabase)
        return session

    def _setlist_with_items(self, setlist_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not setlist_id:
            return None
        result = self.supabase.table("setlists")\
            .select("*")\
            .eq("id", setlist_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        items = self.supabase.table("setlist_items")\
            .select("*")\
            .eq("setlist_id", setlist_id)\
            .execute().data or []
        return {**result.data[0], **summarize_items(items)}

    def _with_details(self, session: Dict[str, Any]) -> Dict[str, Any]:
        band = self.supabase.table("bands")\
            .select("*")\
            .eq("id", session["band_id"])\
            .limit(1)\
            .execute()
        participants = self.list_participants(session["id"], active_only=False)
        host = self._profiles([session["host_id"]]).get(session["host_id"])
        return {
            **session,
            "band": band.data[0] if band.data else None,
            "host": host,
            "participants": participants,
            "setlist": self._setlist_with_items(session.get("setlist_id")),
        }

    def _open_session(self, band_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("jam_sessions")\
            .select("*")\
            .eq("band_id", band_id)\
            .in_("status", OPEN_STATUSES)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def create_session(self, data: JamSessionCreate, user_id: str) -> Dict[str, Any]:
        """Open a session for the band, hosted by the caller, and tell the other members"""
        check_band_member(data.band_id, user_id, self.supabase)
        if self._open_session(data.band_id):
            raise HTTPException(status_code=409, detail="Une session Jam est deja en cours")

        current_song = None
        if data.setlist_id:
            first_item = self.supabase.table("setlist_items")\
                .select("song_id, song_title, song_artist")\
                .eq("setlist_id", data.setlist_id)\
                .eq("item_type", "song")\
                .order("position")\
                .limit(1)\
                .execute()
            if first_item.data:
                current_song = first_item.data[0]

        try:
            result = self.supabase.table("jam_sessions").insert({
                "band_id": data.band_id,
                "host_id": user_id,
                "setlist_id": data.setlist_id,
                "status": "waiting",
                "current_song_index": 0 if current_song else None,
                "current_song_id": current_song.get("song_id") if current_song else None,
                "current_song_title": current_song.get("song_title") if current_song else None,
                "current_song_artist": current_song.get("song_artist") if current_song else None,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating jam session: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la creation de la session")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la creation de la session")
        session = result.data[0]

        self.join_session(session["id"], user_id, check_membership=False)

        members = self.supabase.table("band_members")\
            .select("user_id")\
            .eq("band_id", data.band_id)\
            .neq("user_id", user_id)\
            .execute().data or []
        if members and self.notifier is not None:
            band = self.supabase.table("bands").select("name").eq("id", data.band_id).limit(1).execute()
            band_name = band.data[0]["name"] if band.data else ""
            host_name = display_name(self._profiles([user_id]).get(user_id), "Un membre")
            self.notifier.notify_many(
                [m["user_id"] for m in members],
                "Jam Session demarre !",
                f"{host_name} a demarre une Jam Session dans {band_name}",
                "jam_session_started",
                url=f"/jam/{session['id']}"
            )
        return session

    def get_session(self, session_id: str, user_id: str) -> Dict[str, Any]:
        return self._with_details(self._get_session_row(session_id, user_id))

    def get_active_session(self, band_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        check_band_member(band_id, user_id, self.supabase)
        session = self._open_session(band_id)
        return self._with_details(session) if session else None

    def band_setlists(self, band_id: str, user_id: str) -> List[Dict[str, Any]]:
        """Shared setlists of the band, to pick one when starting a session"""
        check_band_member(band_id, user_id, self.supabase)
        setlists = self.supabase.table("setlists")\
            .select("*")\
            .eq("band_id", band_id)\
            .eq("is_personal", False)\
            .order("created_at", desc=True)\
            .execute().data or []
        if not setlists:
            return []
        items = self.supabase.table("setlist_items")\
            .select("*")\
            .in_("setlist_id", [s["id"] for s in setlists])\
            .execute().data or []
        return [
            {**s, **summarize_items([i for i in items if i["setlist_id"] == s["id"]])}
            for s in setlists
        ]

    def join_session(self, session_id: str, user_id: str, check_membership: bool = True) -> Dict[str, Any]:
        """Upsert the participant row; joining again reactivates it"""
        if check_membership:
            self._get_session_row(session_id, user_id)
        try:
            result = self.supabase.table("jam_session_participants")\
                .upsert({
                    "session_id": session_id,
                    "user_id": user_id,
                    "is_active": True,
                    "left_at": None,
                }, on_conflict="session_id,user_id")\
                .execute()
        except Exception as e:
            logger.error(f"Error joining jam session: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la connexion")
        return result.data[0] if result.data else {}

    def leave_session(self, session_id: str, user_id: str) -> bool:
        result = self.supabase.table("jam_session_participants")\
            .update({"is_active": False, "left_at": datetime.now(timezone.utc).isoformat()})\
            .eq("session_id", session_id)\
            .eq("user_id", user_id)\
            .execute()
        return bool(result.data)

    def get_participants(self, session_id: str, user_id: str) -> List[Dict[str, Any]]:
        """Active participants, for band members only"""
        self._get_session_row(session_id, user_id)
        return self.list_participants(session_id)

    def list_participants(self, session_id: str, active_only: bool = True) -> List[Dict[str, Any]]:
        query = self.supabase.table("jam_session_participants")\
            .select("*")\
            .eq("session_id", session_id)
        if active_only:
            query = query.eq("is_active", True)
        participants = query.order("joined_at").execute().data or []
        profiles = self._profiles([p["user_id"] for p in participants])
        return [{**p, "profile": profiles.get(p["user_id"])} for p in participants]

    def update_state(self, session_id: str, data: JamSessionUpdate, user_id: str) -> Dict[str, Any]:
        """Apply a state change; stamps started_at on the first activation and ended_at on end"""
        session = self._get_session_row(session_id, user_id)
        update_data = data.model_dump(exclude_unset=True)
        now = datetime.now(timezone.utc).isoformat()
        if update_data.get("status") == "active" and not session.get("started_at"):
            update_data["started_at"] = now
        if update_data.get("status") == "ended":
            update_data["ended_at"] = now
        if not update_data:
            return session
        try:
            result = self.supabase.table("jam_sessions")\
                .update(update_data)\
                .eq("id", session_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating jam session: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la mise a jour")
        return result.data[0] if result.data else {**session, **update_data}

    def end_session(self, session_id: str, user_id: str) -> Dict[str, Any]:
        return self.update_state(session_id, JamSessionUpdate(status="ended"), user_id)

    def send_message(self, session_id: str, content: str, user_id: str) -> Dict[str, Any]:
        content = content.strip()
        if not content:
            raise HTTPException(status_code=400, detail="Message vide")
        self._get_session_row(session_id, user_id)
        try:
            result = self.supabase.table("jam_session_messages").insert({
                "session_id": session_id,
                "user_id": user_id,
                "content": content,
            }).execute()
        except Exception as e:
            logger.error(f"Error sending message: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'envoi")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'envoi")
        return result.data[0]

    def list_messages(self, session_id: str, user_id: str, limit: int = 100) -> List[Dict[str, Any]]:
        """Chat history, oldest first"""
        self._get_session_row(session_id, user_id)
        messages = self.supabase.table("jam_session_messages")\
            .select("*")\
            .eq("session_id", session_id)\
            .order("created_at")\
            .limit(limit)\
            .execute().data or []
        profiles = self._profiles([m["user_id"] for m in messages])
        return [{**m, "profile": profiles.get(m["user_id"])} for m in messages]
