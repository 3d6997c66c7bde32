from fastapi import APIRouter, Depends, HTTPException
from app.modules.wishlist.schemas import WishlistSongCreate
from app.modules.wishlist.service import WishlistService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def get_wishlist_service(supabase: Client = Depends(get_request_supabase)) -> WishlistService:
    return WishlistService(supabase)


@router.get("")
async def list_wishlist(
    current_user: Dict = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    return service.list_wishlist(current_user["id"])


@router.get("/count")
async def wishlist_count(
    current_user: Dict = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    return {"count": service.count_wishlist(current_user["id"])}


@router.post("", status_code=201)
async def add_to_wishlist(
    data: WishlistSongCreate,
    current_user: Dict = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Add a song to the wishlist (free plan: 20 songs max)"""
    return service.add_to_wishlist(data, current_user["id"])


@router.delete("/{wishlist_id}", status_code=204)
async def remove_from_wishlist(
    wishlist_id: str,
    current_user: Dict = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    if not service.remove_from_wishlist(wishlist_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Morceau non trouvé")
