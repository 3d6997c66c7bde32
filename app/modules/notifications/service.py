import json
import logging
from typing import List, Optional, Dict, Any
from fastapi import BackgroundTasks, HTTPException
from pywebpush import webpush, WebPushException
from supabase import Client
from app.config.settings import settings
from app.modules.notifications.schemas import (
    NotificationPayload, DeliveryResult, PushSubscribeResponse, PushSubscriptionData
)

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/icons/icon-192x192.svg"
DEFAULT_BADGE = "/icons/icon-96x96.svg"

_vapid_config: Optional[Dict[str, Any]] = None


def get_vapid_config() -> Optional[Dict[str, Any]]:
    """VAPID details, resolved once per process. None when keys are missing."""
    global _vapid_config
    if _vapid_config is None and settings.vapid_public_key and settings.vapid_private_key:
        _vapid_config = {
            "private_key": settings.vapid_private_key,
            "claims": {"sub": settings.vapid_subject},
        }
        logger.info("Web push notifications initialized")
    return _vapid_config


def reset_vapid_config():
    global _vapid_config
    _vapid_config = None


class PushService:
    """Web push delivery. Runs with the service-role client: it reads other users' subscriptions."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def send_push_notification(
        self,
        user_id: str,
        payload: NotificationPayload,
        notification_type: str
    ) -> DeliveryResult:
        """
        Send a notification to every device of a user.

        Endpoints answering 410 Gone are deleted. Other delivery failures are
        logged and counted; one notification_logs row is written per call.
        """
        vapid = get_vapid_config()
        if not vapid:
            logger.error("VAPID not configured, cannot send push notification")
            return DeliveryResult()

        try:
            result = self.supabase.table("push_subscriptions")\
                .select("*")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching push subscriptions: {e}")
            return DeliveryResult()

        subscriptions = result.data or []
        if not subscriptions:
            logger.info(f"No push subscriptions found for user {user_id}")
            return DeliveryResult()

        data = json.dumps({
            "title": payload.title,
            "body": payload.body,
            "icon": payload.icon or DEFAULT_ICON,
            "badge": payload.badge or DEFAULT_BADGE,
            "tag": payload.tag or notification_type,
            "data": payload.data or {},
        })

        success_count = 0
        failed_count = 0
        for subscription in subscriptions:
            try:
                webpush(
                    subscription_info={
                        "endpoint": subscription["endpoint"],
                        "keys": subscription["keys"],
                    },
                    data=data,
                    vapid_private_key=vapid["private_key"],
                    vapid_claims=dict(vapid["claims"]),
                )
                success_count += 1
            except WebPushException as e:
                failed_count += 1
                logger.error(f"Push failed for subscription {subscription['id']}: {e}")
                if e.response is not None and e.response.status_code == 410:
                    self.supabase.table("push_subscriptions")\
                        .delete()\
                        .eq("id", subscription["id"])\
                        .execute()
                    logger.info(f"Removed expired subscription {subscription['id']}")
            except Exception as e:
                failed_count += 1
                logger.error(f"Push failed for subscription {subscription['id']}: {e}")

        try:
            self.supabase.table("notification_logs").insert({
                "user_id": user_id,
                "type": notification_type,
                "title": payload.title,
                "body": payload.body,
                "data": payload.data or {},
                "success": success_count > 0,
            }).execute()
        except Exception as e:
            logger.error(f"Error logging notification: {e}")

        logger.info(f"Sent push to user {user_id}: {success_count} success, {failed_count} failed")
        return DeliveryResult(success=success_count, failed=failed_count)

    def send_to_many(self, notifications: List[Dict[str, Any]]) -> DeliveryResult:
        """Send sequentially to several users; items are {user_id, payload, type}."""
        total = DeliveryResult()
        for item in notifications:
            result = self.send_push_notification(item["user_id"], item["payload"], item["type"])
            total.success += result.success
            total.failed += result.failed
        return total


class PushNotifier:
    """Schedules push deliveries after the response is sent."""

    def __init__(self, push_service: PushService, background_tasks: Optional[BackgroundTasks] = None):
        self.push_service = push_service
        self.background_tasks = background_tasks

    def notify(self, user_id: str, title: str, body: str, notification_type: str, url: Optional[str] = None):
        payload = NotificationPayload(title=title, body=body, data={"url": url} if url else {})
        if self.background_tasks is not None:
            self.background_tasks.add_task(
                self.push_service.send_push_notification, user_id, payload, notification_type
            )
        else:
            self.push_service.send_push_notification(user_id, payload, notification_type)

    def notify_many(self, user_ids: List[str], title: str, body: str, notification_type: str, url: Optional[str] = None):
        payload = NotificationPayload(title=title, body=body, data={"url": url} if url else {})
        notifications = [{"user_id": user_id, "payload": payload, "type": notification_type} for user_id in user_ids]
        if not notifications:
            return
        if self.background_tasks is not None:
            self.background_tasks.add_task(self.push_service.send_to_many, notifications)
        else:
            self.push_service.send_to_many(notifications)


class PushSubscriptionService:
    """Caller-scoped subscription management"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def subscribe(
        self,
        user_id: str,
        subscription: Optional[PushSubscriptionData],
        user_agent: Optional[str] = None
    ) -> PushSubscribeResponse:
        """Store a browser subscription; an already-known endpoint has its keys updated in place"""
        if not subscription or not subscription.endpoint or not subscription.keys:
            raise HTTPException(status_code=400, detail="Invalid subscription data")
        keys = subscription.keys.model_dump(exclude_none=True)
        try:
            existing = self.supabase.table("push_subscriptions")\
                .select("id")\
                .eq("endpoint", subscription.endpoint)\
                .limit(1)\
                .execute()

            if existing.data:
                update_data = {"keys": keys}
                if user_agent:
                    update_data["user_agent"] = user_agent
                self.supabase.table("push_subscriptions")\
                    .update(update_data)\
                    .eq("endpoint", subscription.endpoint)\
                    .execute()
                return PushSubscribeResponse(
                    message="Subscription updated",
                    subscriptionId=existing.data[0]["id"]
                )

            result = self.supabase.table("push_subscriptions").insert({
                "user_id": user_id,
                "endpoint": subscription.endpoint,
                "keys": keys,
                "user_agent": user_agent,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create subscription")
            return PushSubscribeResponse(
                message="Subscription created",
                subscriptionId=result.data[0]["id"]
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving push subscription: {e}")
            raise HTTPException(status_code=500, detail="Failed to save subscription")

    def unsubscribe(self, user_id: str, endpoint: Optional[str]) -> bool:
        if not endpoint:
            raise HTTPException(status_code=400, detail="Endpoint is required")
        try:
            self.supabase.table("push_subscriptions")\
                .delete()\
                .eq("endpoint", endpoint)\
                .eq("user_id", user_id)\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Error deleting push subscription: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete subscription")
