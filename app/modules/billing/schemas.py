from pydantic import BaseModel
from typing import Optional, Literal


class CheckoutRequest(BaseModel):
    plan: Optional[str] = None
    interval: Optional[str] = None


class CheckoutResponse(BaseModel):
    action: Literal["updated", "checkout"]
    url: Optional[str] = None
    success: Optional[bool] = None
    message: Optional[str] = None


class PortalResponse(BaseModel):
    url: str


class WebhookResponse(BaseModel):
    received: bool = True
