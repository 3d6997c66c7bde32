from fastapi import APIRouter, Depends, Query
from app.modules.feed.schemas import ActivityResponse
from app.modules.feed.service import ActivityService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/feed", tags=["feed"])


def get_activity_service(supabase: Client = Depends(get_request_supabase)) -> ActivityService:
    return ActivityService(supabase)


@router.get("", response_model=List[ActivityResponse])
async def get_feed(
    limit: int = Query(50, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service)
):
    """Activity feed of accepted friends"""
    return service.get_feed(current_user["id"], limit)


@router.get("/friends/{friend_id}", response_model=List[ActivityResponse])
async def get_friend_activities(
    friend_id: str,
    limit: int = Query(5, ge=1, le=50),
    current_user: Dict = Depends(get_current_user),
    service: ActivityService = Depends(get_activity_service)
):
    return service.get_friend_recent_activities(current_user["id"], friend_id, limit)
