import stripe
from fastapi import APIRouter, Depends, Header, Request
from app.config.plans_config import get_plan_catalog
from app.database.supabase_client import get_service_supabase
from app.modules.billing.schemas import CheckoutRequest, CheckoutResponse, PortalResponse, WebhookResponse
from app.modules.billing.service import BillingService, get_stripe_client
from app.modules.billing.webhooks import StripeWebhookHandler
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/stripe", tags=["billing"])


def get_billing_service(
    supabase: Client = Depends(get_request_supabase),
    stripe_client: stripe.StripeClient = Depends(get_stripe_client)
) -> BillingService:
    return BillingService(supabase, stripe_client)


def get_webhook_handler(
    supabase: Client = Depends(get_service_supabase),
    stripe_client: stripe.StripeClient = Depends(get_stripe_client)
) -> StripeWebhookHandler:
    return StripeWebhookHandler(supabase, stripe_client)


@router.get("/plans")
async def list_plans():
    """Plan catalogue for the pricing page"""
    return get_plan_catalog()


@router.post("/checkout", response_model=CheckoutResponse, response_model_exclude_none=True)
async def checkout(
    data: CheckoutRequest,
    current_user: Dict = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service)
):
    """Switch an active subscription, or open a Checkout session"""
    return service.select_plan(current_user, data.plan, data.interval)


@router.post("/portal", response_model=PortalResponse)
async def billing_portal(
    current_user: Dict = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service)
):
    return service.create_portal_session(current_user["id"])


@router.post("/webhooks", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    handler: StripeWebhookHandler = Depends(get_webhook_handler)
):
    payload = await request.body()
    return handler.handle(payload, stripe_signature)
