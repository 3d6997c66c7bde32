import logging
import stripe
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from fastapi import HTTPException
from supabase import Client
from app.config.settings import settings
from app.config.plans_config import get_plan_from_price_id
from app.modules.billing.service import stripe_field

logger = logging.getLogger(__name__)


class StripeWebhookHandler:
    """
    Mirrors Stripe subscription state onto profiles.

    Runs with the service-role client. Users are resolved from the
    supabase_user_id metadata, falling back to the stored customer id.
    """

    def __init__(self, supabase: Client, stripe_client: stripe.StripeClient):
        self.supabase = supabase
        self.stripe = stripe_client
        self.handlers = {
            "checkout.session.completed": self.handle_checkout_completed,
            "customer.subscription.created": self.handle_subscription_change,
            "customer.subscription.updated": self.handle_subscription_change,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "invoice.payment_succeeded": self.handle_payment_succeeded,
            "invoice.payment_failed": self.handle_payment_failed,
        }

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Any:
        if not signature:
            logger.error("Stripe webhook received without signature")
            raise HTTPException(status_code=400, detail="No signature")
        try:
            return self.stripe.construct_event(payload, signature, settings.stripe_webhook_secret or "")
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"Stripe webhook signature verification failed: {e}")
            raise HTTPException(status_code=400, detail="Invalid signature")

    def handle(self, payload: bytes, signature: Optional[str]) -> Dict[str, bool]:
        event = self.construct_event(payload, signature)
        event_type = stripe_field(event, "type")
        logger.info(f"Received Stripe event: {event_type}")

        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled Stripe event type: {event_type}")
            return {"received": True}
        try:
            handler(event["data"]["object"])
        except Exception as e:
            logger.error(f"Stripe webhook handler error: {e}")
            raise HTTPException(status_code=500, detail="Webhook handler failed")
        return {"received": True}

    def _user_id_for_customer(self, customer_id: Optional[str]) -> Optional[str]:
        if not customer_id:
            return None
        result = self.supabase.table("profiles")\
            .select("id")\
            .eq("stripe_customer_id", customer_id)\
            .limit(1)\
            .execute()
        return result.data[0]["id"] if result.data else None

    def _resolve_user_id(self, obj: Any) -> Optional[str]:
        metadata = stripe_field(obj, "metadata", {})
        return stripe_field(metadata, "supabase_user_id") or self._user_id_for_customer(stripe_field(obj, "customer"))

    def update_user_subscription(self, user_id: str, subscription: Any):
        items = stripe_field(stripe_field(subscription, "items", {}), "data", [])
        first_item = items[0] if items else None
        price_id = stripe_field(stripe_field(first_item, "price", {}), "id")
        if not price_id:
            logger.error("No price id on subscription")
            return

        # Newer API versions carry the period end on the item
        period_end = stripe_field(subscription, "current_period_end") or stripe_field(first_item, "current_period_end")
        self.supabase.table("profiles")\
            .update({
                "plan": get_plan_from_price_id(price_id),
                "stripe_subscription_id": stripe_field(subscription, "id"),
                "subscription_status": stripe_field(subscription, "status"),
                "subscription_period_end": (
                    datetime.fromtimestamp(period_end, tz=timezone.utc).isoformat() if period_end else None
                ),
            })\
            .eq("id", user_id)\
            .execute()

    def handle_checkout_completed(self, session: Any):
        user_id = stripe_field(stripe_field(session, "metadata", {}), "supabase_user_id")
        if not user_id:
            logger.error("No user id in checkout session metadata")
            return
        if stripe_field(session, "mode") != "subscription" or not stripe_field(session, "subscription"):
            logger.info("Checkout session is not a subscription")
            return
        subscription = self.stripe.subscriptions.retrieve(session["subscription"])
        self.update_user_subscription(user_id, subscription)
        logger.info(f"Checkout completed for user {user_id}")

    def handle_subscription_change(self, subscription: Any):
        user_id = self._resolve_user_id(subscription)
        if not user_id:
            logger.error("Could not find user for subscription")
            return
        self.update_user_subscription(user_id, subscription)
        logger.info(f"Subscription updated for user {user_id}")

    def handle_subscription_deleted(self, subscription: Any):
        user_id = self._resolve_user_id(subscription)
        if not user_id:
            logger.error("Could not find user for deleted subscription")
            return
        self.supabase.table("profiles")\
            .update({
                "plan": "free",
                "subscription_status": "canceled",
                "stripe_subscription_id": None,
                "subscription_period_end": None,
            })\
            .eq("id", user_id)\
            .execute()
        logger.info(f"Subscription deleted, user {user_id} reset to free")

    def handle_payment_succeeded(self, invoice: Any):
        subscription_id = stripe_field(invoice, "subscription") or stripe_field(
            stripe_field(stripe_field(invoice, "parent", {}), "subscription_details", {}), "subscription"
        )
        if not subscription_id:
            return
        subscription = self.stripe.subscriptions.retrieve(subscription_id)
        user_id = stripe_field(stripe_field(subscription, "metadata", {}), "supabase_user_id") \
            or self._user_id_for_customer(stripe_field(invoice, "customer"))
        if not user_id:
            return
        self.supabase.table("profiles")\
            .update({"subscription_status": "active"})\
            .eq("id", user_id)\
            .execute()
        logger.info(f"Payment succeeded for user {user_id}")

    def handle_payment_failed(self, invoice: Any):
        user_id = self._user_id_for_customer(stripe_field(invoice, "customer"))
        if not user_id:
            logger.error("Could not find user for failed payment")
            return
        self.supabase.table("profiles")\
            .update({"subscription_status": "past_due"})\
            .eq("id", user_id)\
            .execute()
        logger.info(f"Payment failed for user {user_id}")
