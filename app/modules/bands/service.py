import logging
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.core.dependencies import check_band_member, is_band_member
from app.modules.feed.service import ActivityService, PROFILE_SUMMARY_FIELDS
from app.modules.challenges.service import display_name
from app.modules.notifications.service import PushNotifier
from app.modules.bands.schemas import BandCreate, BandUpdate

logger = logging.getLogger(__name__)


class BandService:
    def __init__(self, supabase: Client, notifier: Optional[PushNotifier] = None):
        self.supabase = supabase
        self.notifier = notifier
        self.activities = ActivityService(supabase)

    def _profiles(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not user_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select(PROFILE_SUMMARY_FIELDS)\
            .in_("id", list(set(user_ids)))\
            .execute()
        return {p["id"]: p for p in result.data or []}

    def _with_members(self, bands: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Attach owner profile and members (with their profile) to each band"""
        if not bands:
            return []
        members = self.supabase.table("band_members")\
            .select("*")\
            .in_("band_id", [b["id"] for b in bands])\
            .execute().data or []
        profiles = self._profiles([m["user_id"] for m in members] + [b["owner_id"] for b in bands])
        for band in bands:
            band["owner"] = profiles.get(band["owner_id"])
            band["members"] = [
                {**m, "profile": profiles.get(m["user_id"])}
                for m in members if m["band_id"] == band["id"]
            ]
        return bands

    def _get_band_row(self, band_id: str) -> Dict[str, Any]:
        result = self.supabase.table("bands")\
            .select("*")\
            .eq("id", band_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Groupe non trouvé")
        return result.data[0]

    def list_bands(self, user_id: str) -> List[Dict[str, Any]]:
        """Bands the user belongs to, newest first"""
        memberships = self.supabase.table("band_members")\
            .select("band_id")\
            .eq("user_id", user_id)\
            .execute().data or []
        if not memberships:
            return []
        result = self.supabase.table("bands")\
            .select("*")\
            .in_("id", [m["band_id"] for m in memberships])\
            .order("created_at", desc=True)\
            .execute()
        return self._with_members(result.data or [])

    def get_band(self, band_id: str, user_id: str) -> Dict[str, Any]:
        band = self._get_band_row(band_id)
        check_band_member(band_id, user_id, self.supabase)
        return self._with_members([band])[0]

    def create_band(self, data: BandCreate, user_id: str) -> Dict[str, Any]:
        """Create a band owned by the caller, who becomes its first member"""
        try:
            result = self.supabase.table("bands").insert({
                **data.model_dump(),
                "owner_id": user_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating band: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la creation du groupe")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la creation du groupe")
        band = result.data[0]

        try:
            self.supabase.table("band_members").insert({
                "band_id": band["id"],
                "user_id": user_id,
                "role": "owner",
            }).execute()
        except Exception as e:
            logger.error(f"Error adding owner as member: {e}")
            self.supabase.table("bands").delete().eq("id", band["id"]).execute()
            raise HTTPException(status_code=500, detail="Erreur lors de la creation du groupe")

        self.activities.create_activity(user_id, "band_created", band["id"], {"band_name": band["name"]})
        return band

    def update_band(self, band_id: str, data: BandUpdate, user_id: str) -> Dict[str, Any]:
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="Aucune modification")
        result = self.supabase.table("bands")\
            .update(update_data)\
            .eq("id", band_id)\
            .eq("owner_id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Groupe non trouvé")
        return result.data[0]

    def delete_band(self, band_id: str, user_id: str) -> bool:
        result = self.supabase.table("bands")\
            .delete()\
            .eq("id", band_id)\
            .eq("owner_id", user_id)\
            .execute()
        return bool(result.data)

    def invite(self, band_id: str, invitee_id: str, user_id: str) -> Dict[str, Any]:
        check_band_member(band_id, user_id, self.supabase)
        if is_band_member(band_id, invitee_id, self.supabase):
            raise HTTPException(status_code=400, detail="Cette personne est deja membre du groupe")

        pending = self.supabase.table("band_invitations")\
            .select("id")\
            .eq("band_id", band_id)\
            .eq("invitee_id", invitee_id)\
            .eq("status", "pending")\
            .limit(1)\
            .execute()
        if pending.data:
            raise HTTPException(status_code=400, detail="Une invitation est deja en attente")

        band = self._get_band_row(band_id)
        try:
            result = self.supabase.table("band_invitations").insert({
                "band_id": band_id,
                "inviter_id": user_id,
                "invitee_id": invitee_id,
                "status": "pending",
            }).execute()
        except Exception as e:
            logger.error(f"Error creating invitation: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'envoi de l'invitation")

        if self.notifier is not None:
            inviter = display_name(self._profiles([user_id]).get(user_id), "Quelqu'un")
            self.notifier.notify(
                invitee_id,
                "Invitation a un groupe",
                f"{inviter} t'invite a rejoindre {band['name']}",
                "band_invitation",
                url="/setlists"
            )
        return result.data[0] if result.data else {}

    def list_pending_invitations(self, user_id: str) -> List[Dict[str, Any]]:
        invitations = self.supabase.table("band_invitations")\
            .select("*")\
            .eq("invitee_id", user_id)\
            .eq("status", "pending")\
            .order("created_at", desc=True)\
            .execute().data or []
        if not invitations:
            return []
        bands = self.supabase.table("bands")\
            .select("*")\
            .in_("id", [i["band_id"] for i in invitations])\
            .execute().data or []
        bands_by_id = {b["id"]: b for b in bands}
        inviters = self._profiles([i["inviter_id"] for i in invitations])
        return [
            {**i, "band": bands_by_id.get(i["band_id"]), "inviter": inviters.get(i["inviter_id"])}
            for i in invitations
        ]

    def accept_invitation(self, invitation_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("band_invitations")\
            .select("*")\
            .eq("id", invitation_id)\
            .eq("invitee_id", user_id)\
            .eq("status", "pending")\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Invitation non trouvee")
        invitation = result.data[0]

        self.supabase.table("band_invitations")\
            .update({"status": "accepted"})\
            .eq("id", invitation_id)\
            .execute()
        try:
            member = self.supabase.table("band_members").insert({
                "band_id": invitation["band_id"],
                "user_id": user_id,
                "role": "member",
            }).execute()
        except Exception as e:
            logger.error(f"Error adding member: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout au groupe")

        band = self.supabase.table("bands")\
            .select("name")\
            .eq("id", invitation["band_id"])\
            .limit(1)\
            .execute()
        band_name = band.data[0]["name"] if band.data else "Groupe"
        self.activities.create_activity(user_id, "band_joined", invitation["band_id"], {"band_name": band_name})
        return member.data[0] if member.data else {}

    def decline_invitation(self, invitation_id: str, user_id: str) -> bool:
        result = self.supabase.table("band_invitations")\
            .update({"status": "declined"})\
            .eq("id", invitation_id)\
            .eq("invitee_id", user_id)\
            .execute()
        return bool(result.data)

    def leave_band(self, band_id: str, user_id: str) -> bool:
        band = self._get_band_row(band_id)
        if band["owner_id"] == user_id:
            raise HTTPException(
                status_code=400,
                detail="Le proprietaire ne peut pas quitter le groupe. Transfere la propriete ou supprime le groupe."
            )
        result = self.supabase.table("band_members")\
            .delete()\
            .eq("band_id", band_id)\
            .eq("user_id", user_id)\
            .execute()
        return bool(result.data)

    def remove_member(self, band_id: str, member_id: str, user_id: str) -> bool:
        band = self._get_band_row(band_id)
        if band["owner_id"] != user_id:
            raise HTTPException(status_code=403, detail="Seul le proprietaire peut retirer des membres")
        if member_id == user_id:
            raise HTTPException(status_code=400, detail="Tu ne peux pas te retirer toi-meme")
        result = self.supabase.table("band_members")\
            .delete()\
            .eq("band_id", band_id)\
            .eq("user_id", member_id)\
            .execute()
        return bool(result.data)

    def members_songs(self, band_id: str, user_id: str) -> List[Dict[str, Any]]:
        """Each member with their library, for building a band setlist"""
        check_band_member(band_id, user_id, self.supabase)
        members = self.supabase.table("band_members")\
            .select("user_id")\
            .eq("band_id", band_id)\
            .execute().data or []
        member_ids = [m["user_id"] for m in members]
        profiles = self._profiles(member_ids)
        songs = []
        if member_ids:
            songs = self.supabase.table("songs")\
                .select("*")\
                .in_("user_id", member_ids)\
                .order("title")\
                .execute().data or []
        return [
            {"member": profiles.get(member_id), "songs": [s for s in songs if s["user_id"] == member_id]}
            for member_id in member_ids
        ]

    def search_invitees(self, band_id: str, query: str, user_id: str) -> List[Dict[str, Any]]:
        """Profiles matching the query that are neither members nor already invited"""
        if len(query) < 2:
            return []
        members = self.supabase.table("band_members")\
            .select("user_id")\
            .eq("band_id", band_id)\
            .execute().data or []
        invitations = self.supabase.table("band_invitations")\
            .select("invitee_id")\
            .eq("band_id", band_id)\
            .eq("status", "pending")\
            .execute().data or []
        excluded = {m["user_id"] for m in members} | {i["invitee_id"] for i in invitations}

        result = self.supabase.table("profiles")\
            .select(PROFILE_SUMMARY_FIELDS)\
            .or_(f"username.ilike.%{query}%,display_name.ilike.%{query}%")\
            .limit(10 + len(excluded))\
            .execute()
        return [p for p in result.data or [] if p["id"] not in excluded][:10]
