from fastapi import APIRouter, Depends, HTTPException
from app.modules.setlists.schemas import (
    SetlistCreate, SetlistUpdate, SetlistItemCreate, SetlistItemUpdate, SetlistItemMove, SetlistDuplicate
)
from app.modules.setlists.service import SetlistService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/setlists", tags=["setlists"])


def get_setlist_service(supabase: Client = Depends(get_request_supabase)) -> SetlistService:
    return SetlistService(supabase)


@router.get("")
async def list_setlists(
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    """Personal and band setlists with totals"""
    return service.list_setlists(current_user["id"])


@router.post("", status_code=201)
async def create_setlist(
    data: SetlistCreate,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    return service.create_setlist(data, current_user["id"])


@router.put("/items/{item_id}")
async def update_item(
    item_id: str,
    data: SetlistItemUpdate,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    return service.update_item(item_id, data, current_user["id"])


@router.delete("/items/{item_id}", status_code=204)
async def delete_item(
    item_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    service.delete_item(item_id, current_user["id"])


@router.get("/{setlist_id}")
async def get_setlist(
    setlist_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    return service.get_setlist(setlist_id, current_user["id"])


@router.put("/{setlist_id}")
async def update_setlist(
    setlist_id: str,
    data: SetlistUpdate,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    return service.update_setlist(setlist_id, data, current_user["id"])


@router.delete("/{setlist_id}", status_code=204)
async def delete_setlist(
    setlist_id: str,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    if not service.delete_setlist(setlist_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Setlist non trouvee")


@router.post("/{setlist_id}/items", status_code=201)
async def add_item(
    setlist_id: str,
    data: SetlistItemCreate,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    return service.add_item(setlist_id, data, current_user["id"])


@router.post("/{setlist_id}/items/{item_id}/move")
async def move_item(
    setlist_id: str,
    item_id: str,
    data: SetlistItemMove,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    service.move_item(setlist_id, item_id, data.position, current_user["id"])
    return {"success": True}


@router.post("/{setlist_id}/duplicate", status_code=201)
async def duplicate_setlist(
    setlist_id: str,
    data: Optional[SetlistDuplicate] = None,
    current_user: Dict = Depends(get_current_user),
    service: SetlistService = Depends(get_setlist_service)
):
    return service.duplicate_setlist(setlist_id, current_user["id"], data.name if data else None)
