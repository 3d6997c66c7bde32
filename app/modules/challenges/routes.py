from fastapi import APIRouter, Depends, HTTPException
from app.modules.challenges.schemas import ChallengeCreate, LeaderboardPeriod
from app.modules.challenges.service import ChallengeService
from app.modules.notifications.routes import get_push_notifier
from app.modules.notifications.service import PushNotifier
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/challenges", tags=["challenges"])


def get_challenge_service(
    supabase: Client = Depends(get_request_supabase),
    notifier: PushNotifier = Depends(get_push_notifier)
) -> ChallengeService:
    return ChallengeService(supabase, notifier)


@router.get("")
async def list_challenges(
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    """Challenges the caller created or was invited to"""
    return service.list_challenges(current_user["id"])


@router.post("", status_code=201)
async def create_challenge(
    data: ChallengeCreate,
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    """Challenge an accepted friend"""
    return service.create_challenge(data, current_user["id"])


@router.get("/pending/count")
async def pending_count(
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    return {"count": service.count_pending(current_user["id"])}


@router.get("/leaderboard")
async def leaderboard(
    period: LeaderboardPeriod = "week",
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    return service.get_leaderboard(current_user["id"], period)


@router.get("/with/{friend_id}")
async def active_with_friend(
    friend_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    challenge = service.get_active_with_friend(current_user["id"], friend_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Aucun défi en cours")
    return challenge


@router.post("/{challenge_id}/accept")
async def accept_challenge(
    challenge_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    return service.accept_challenge(challenge_id, current_user["id"])


@router.post("/{challenge_id}/decline")
async def decline_challenge(
    challenge_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    service.decline_challenge(challenge_id, current_user["id"])
    return {"success": True}


@router.post("/{challenge_id}/cancel")
async def cancel_challenge(
    challenge_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ChallengeService = Depends(get_challenge_service)
):
    service.cancel_challenge(challenge_id, current_user["id"])
    return {"success": True}
