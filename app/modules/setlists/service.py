import logging
from supabase import Client
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from app.core.dependencies import check_band_member, is_band_member
from app.modules.feed.service import ActivityService
from app.modules.setlists.schemas import (
    SetlistCreate, SetlistUpdate, SetlistItemCreate, SetlistItemUpdate
)

logger = logging.getLogger(__name__)

ITEM_COPY_FIELDS = (
    "position", "item_type", "song_id", "song_title", "song_artist", "song_cover_url",
    "song_owner_id", "section_name", "notes", "transition_seconds", "duration_seconds",
)


def summarize_items(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Items in position order with the setlist's total duration and song count"""
    ordered = sorted(items, key=lambda item: item.get("position") or 0)
    return {
        "items": ordered,
        "total_duration_seconds": sum(
            (item.get("duration_seconds") or 0) + (item.get("transition_seconds") or 0)
            for item in ordered
        ),
        "song_count": len([item for item in ordered if item.get("item_type") == "song"]),
    }


class SetlistService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.activities = ActivityService(supabase)

    def _band_ids(self, user_id: str) -> List[str]:
        result = self.supabase.table("band_members")\
            .select("band_id")\
            .eq("user_id", user_id)\
            .execute()
        return [m["band_id"] for m in result.data or []]

    def _with_details(self, setlists: List[Dict[str, Any]], with_owners: bool = False) -> List[Dict[str, Any]]:
        if not setlists:
            return []
        items = self.supabase.table("setlist_items")\
            .select("*")\
            .in_("setlist_id", [s["id"] for s in setlists])\
            .execute().data or []
        band_ids = list({s["band_id"] for s in setlists if s.get("band_id")})
        bands = {}
        if band_ids:
            result = self.supabase.table("bands").select("id, name, avatar_url").in_("id", band_ids).execute()
            bands = {b["id"]: b for b in result.data or []}
        if with_owners:
            owner_ids = list({i["song_owner_id"] for i in items if i.get("song_owner_id")})
            owners = {}
            if owner_ids:
                result = self.supabase.table("profiles")\
                    .select("id, username, display_name, avatar_url")\
                    .in_("id", owner_ids)\
                    .execute()
                owners = {p["id"]: p for p in result.data or []}
            for item in items:
                item["song_owner"] = owners.get(item.get("song_owner_id"))

        detailed = []
        for setlist in setlists:
            own_items = [i for i in items if i["setlist_id"] == setlist["id"]]
            detailed.append({
                **setlist,
                "band": bands.get(setlist.get("band_id")),
                **summarize_items(own_items),
            })
        return detailed

    def _get_accessible(self, setlist_id: str, user_id: str) -> Dict[str, Any]:
        """A setlist the user created or that belongs to one of their bands"""
        result = self.supabase.table("setlists")\
            .select("*")\
            .eq("id", setlist_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Setlist non trouvee")
        setlist = result.data[0]
        if setlist["user_id"] != user_id and not (
            setlist.get("band_id") and is_band_member(setlist["band_id"], user_id, self.supabase)
        ):
            raise HTTPException(status_code=404, detail="Setlist non trouvee")
        return setlist

    def _get_item(self, item_id: str, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("setlist_items")\
            .select("*")\
            .eq("id", item_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Item non trouve")
        item = result.data[0]
        self._get_accessible(item["setlist_id"], user_id)
        return item

    def list_setlists(self, user_id: str) -> List[Dict[str, Any]]:
        """Personal setlists and those of the user's bands, newest first"""
        try:
            own = self.supabase.table("setlists")\
                .select("*")\
                .eq("user_id", user_id)\
                .execute().data or []
            band_ids = self._band_ids(user_id)
            shared = []
            if band_ids:
                shared = self.supabase.table("setlists")\
                    .select("*")\
                    .in_("band_id", band_ids)\
                    .execute().data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        merged = {s["id"]: s for s in own + shared}
        setlists = sorted(merged.values(), key=lambda s: s.get("created_at") or "", reverse=True)
        return self._with_details(setlists)

    def get_setlist(self, setlist_id: str, user_id: str) -> Dict[str, Any]:
        setlist = self._get_accessible(setlist_id, user_id)
        return self._with_details([setlist], with_owners=True)[0]

    def create_setlist(self, data: SetlistCreate, user_id: str) -> Dict[str, Any]:
        if data.band_id:
            check_band_member(data.band_id, user_id, self.supabase)
        try:
            result = self.supabase.table("setlists").insert({
                **data.model_dump(),
                "user_id": user_id,
                "is_personal": not data.band_id,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating setlist: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la creation")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la creation")

        setlist = result.data[0]
        self.activities.create_activity(
            user_id, "setlist_created", setlist["id"], {"name": setlist["name"], "is_band": bool(data.band_id)}
        )
        return setlist

    def update_setlist(self, setlist_id: str, data: SetlistUpdate, user_id: str) -> Dict[str, Any]:
        setlist = self._get_accessible(setlist_id, user_id)
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return setlist
        result = self.supabase.table("setlists")\
            .update(update_data)\
            .eq("id", setlist_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la mise a jour")
        return result.data[0]

    def delete_setlist(self, setlist_id: str, user_id: str) -> bool:
        self._get_accessible(setlist_id, user_id)
        result = self.supabase.table("setlists")\
            .delete()\
            .eq("id", setlist_id)\
            .execute()
        return bool(result.data)

    def add_item(self, setlist_id: str, data: SetlistItemCreate, user_id: str) -> Dict[str, Any]:
        """Append an item, or insert it at a position after shifting the items below"""
        self._get_accessible(setlist_id, user_id)
        last = self.supabase.table("setlist_items")\
            .select("position")\
            .eq("setlist_id", setlist_id)\
            .order("position", desc=True)\
            .limit(1)\
            .execute()
        max_position = last.data[0]["position"] if last.data else 0
        position = data.position if data.position is not None else max_position + 1

        if last.data and position <= max_position:
            self.supabase.rpc("shift_setlist_items", {
                "p_setlist_id": setlist_id,
                "p_from_position": position,
                "p_shift_amount": 1,
            }).execute()

        try:
            result = self.supabase.table("setlist_items").insert({
                **data.model_dump(),
                "setlist_id": setlist_id,
                "position": position,
            }).execute()
        except Exception as e:
            logger.error(f"Error adding item: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de l'ajout")
        return result.data[0]

    def update_item(self, item_id: str, data: SetlistItemUpdate, user_id: str) -> Dict[str, Any]:
        item = self._get_item(item_id, user_id)
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return item
        result = self.supabase.table("setlist_items")\
            .update(update_data)\
            .eq("id", item_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la mise a jour")
        return result.data[0]

    def delete_item(self, item_id: str, user_id: str) -> bool:
        """Delete an item and close the gap it leaves"""
        item = self._get_item(item_id, user_id)
        result = self.supabase.table("setlist_items")\
            .delete()\
            .eq("id", item_id)\
            .execute()
        self.supabase.rpc("reorder_setlist_items", {"p_setlist_id": item["setlist_id"]}).execute()
        return bool(result.data)

    def move_item(self, setlist_id: str, item_id: str, new_position: int, user_id: str) -> bool:
        item = self._get_item(item_id, user_id)
        if item["setlist_id"] != setlist_id:
            raise HTTPException(status_code=404, detail="Item non trouve")
        if item["position"] == new_position:
            return True
        try:
            self.supabase.rpc("move_setlist_item", {
                "p_setlist_id": setlist_id,
                "p_item_id": item_id,
                "p_old_position": item["position"],
                "p_new_position": new_position,
            }).execute()
        except Exception as e:
            logger.error(f"Error reordering items: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors du reordonnancement")
        return True

    def duplicate_setlist(self, setlist_id: str, user_id: str, name: Optional[str] = None) -> Dict[str, Any]:
        """Copy a setlist and its items, without the concert date"""
        original = self.get_setlist(setlist_id, user_id)
        try:
            result = self.supabase.table("setlists").insert({
                "name": name or f"{original['name']} (copie)",
                "description": original.get("description"),
                "concert_date": None,
                "venue": original.get("venue"),
                "band_id": original.get("band_id"),
                "user_id": user_id,
                "is_personal": original.get("is_personal", not original.get("band_id")),
            }).execute()
        except Exception as e:
            logger.error(f"Error duplicating setlist: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la duplication")
        if not result.data:
            raise HTTPException(status_code=500, detail="Erreur lors de la duplication")
        copy = result.data[0]

        items = [
            {"setlist_id": copy["id"], **{field: item.get(field) for field in ITEM_COPY_FIELDS}}
            for item in original["items"]
        ]
        if items:
            try:
                self.supabase.table("setlist_items").insert(items).execute()
            except Exception as e:
                logger.error(f"Error copying items: {e}")
                self.supabase.table("setlists").delete().eq("id", copy["id"]).execute()
                raise HTTPException(status_code=500, detail="Erreur lors de la copie des morceaux")
        return copy
