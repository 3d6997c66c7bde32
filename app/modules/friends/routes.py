from fastapi import APIRouter, Depends, HTTPException, Query
from app.modules.friends.schemas import (
    FriendRequestCreate, BlockUserRequest, UserSearchResult, Friend, FriendRequest, FriendsLimitInfo, FriendProfile
)
from app.modules.friends.service import FriendService
from app.modules.notifications.routes import get_push_notifier
from app.modules.notifications.service import PushNotifier
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/friends", tags=["friends"])


def get_friend_service(
    supabase: Client = Depends(get_request_supabase),
    notifier: PushNotifier = Depends(get_push_notifier)
) -> FriendService:
    return FriendService(supabase, notifier)


@router.get("", response_model=List[Friend])
async def list_friends(
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return service.list_friends(current_user["id"])


@router.get("/search", response_model=List[UserSearchResult])
async def search_users(
    q: str = Query(""),
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    """Find users by username"""
    return service.search_users(q, current_user["id"])


@router.get("/count")
async def friends_count(
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return {"count": service.count_friends(current_user["id"])}


@router.get("/limit", response_model=FriendsLimitInfo)
async def friends_limit(
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return service.get_limit_info(current_user["id"])


@router.post("/requests", status_code=201)
async def send_friend_request(
    data: FriendRequestCreate,
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return service.send_request(data.addressee_id, current_user["id"])


@router.get("/requests/pending", response_model=List[FriendRequest])
async def pending_requests(
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return service.list_pending_requests(current_user["id"])


@router.get("/requests/pending/count")
async def pending_requests_count(
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return {"count": service.count_pending_requests(current_user["id"])}


@router.post("/requests/{friendship_id}/accept")
async def accept_friend_request(
    friendship_id: str,
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return service.accept_request(friendship_id, current_user["id"])


@router.post("/requests/{friendship_id}/reject", status_code=204)
async def reject_friend_request(
    friendship_id: str,
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    if not service.reject_request(friendship_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Demande non trouvée")


@router.post("/block", status_code=201)
async def block_user(
    data: BlockUserRequest,
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return service.block_user(data.user_id, current_user["id"])


@router.get("/{friend_id}/profile", response_model=FriendProfile)
async def friend_profile(
    friend_id: str,
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    return service.get_friend_profile(friend_id, current_user["id"])


@router.delete("/{friendship_id}", status_code=204)
async def remove_friend(
    friendship_id: str,
    current_user: Dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service)
):
    if not service.remove_friend(friendship_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Ami non trouvé")
