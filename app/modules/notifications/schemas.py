from pydantic import BaseModel
from typing import Optional, Dict, Any


class PushKeys(BaseModel):
    p256dh: Optional[str] = None
    auth: Optional[str] = None


class PushSubscriptionData(BaseModel):
    endpoint: Optional[str] = None
    keys: Optional[PushKeys] = None


class PushSubscribeRequest(BaseModel):
    subscription: Optional[PushSubscriptionData] = None


class PushUnsubscribeRequest(BaseModel):
    endpoint: Optional[str] = None


class PushSubscribeResponse(BaseModel):
    message: str
    subscriptionId: str


class NotificationPayload(BaseModel):
    title: str
    body: str
    icon: Optional[str] = None
    badge: Optional[str] = None
    tag: Optional[str] = None
    data: Dict[str, Any] = {}


class DeliveryResult(BaseModel):
    success: int = 0
    failed: int = 0
