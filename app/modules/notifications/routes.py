from fastapi import APIRouter, BackgroundTasks, Depends, Request
from app.config.settings import settings
from app.database.supabase_client import get_service_supabase
from app.modules.notifications.schemas import (
    PushSubscribeRequest, PushUnsubscribeRequest, PushSubscribeResponse
)
from app.modules.notifications.service import PushService, PushNotifier, PushSubscriptionService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/push", tags=["push"])


def get_push_service(supabase: Client = Depends(get_service_supabase)) -> PushService:
    return PushService(supabase)


def get_push_notifier(
    background_tasks: BackgroundTasks,
    push_service: PushService = Depends(get_push_service)
) -> PushNotifier:
    return PushNotifier(push_service, background_tasks)


def get_subscription_service(supabase: Client = Depends(get_request_supabase)) -> PushSubscriptionService:
    return PushSubscriptionService(supabase)


@router.post("/subscribe", response_model=PushSubscribeResponse)
async def subscribe(
    request: Request,
    body: PushSubscribeRequest,
    current_user: Dict = Depends(get_current_user),
    service: PushSubscriptionService = Depends(get_subscription_service)
):
    """Register this browser for push notifications"""
    return service.subscribe(
        current_user["id"],
        body.subscription,
        request.headers.get("user-agent")
    )


@router.delete("/subscribe")
async def unsubscribe(
    body: PushUnsubscribeRequest,
    current_user: Dict = Depends(get_current_user),
    service: PushSubscriptionService = Depends(get_subscription_service)
):
    """Remove one of the caller's subscriptions"""
    service.unsubscribe(current_user["id"], body.endpoint)
    return {"message": "Subscription deleted"}


@router.get("/vapid-public-key")
async def vapid_public_key():
    return {"publicKey": settings.vapid_public_key}
