import logging
import stripe
from typing import Optional, Dict, Any
from fastapi import HTTPException
from supabase import Client
from app.config.settings import settings
from app.config.plans_config import PLAN_ORDER, get_price_id

logger = logging.getLogger(__name__)

ACTIVE_SUBSCRIPTION_STATUSES = ("active", "trialing")

_stripe_client: Optional[stripe.StripeClient] = None


def get_stripe_client() -> stripe.StripeClient:
    """Stripe client, created on first use"""
    global _stripe_client
    if _stripe_client is None:
        if not settings.stripe_secret_key:
            logger.error("STRIPE_SECRET_KEY is not configured")
            raise HTTPException(status_code=500, detail="Paiement non configuré")
        _stripe_client = stripe.StripeClient(settings.stripe_secret_key)
    return _stripe_client


def reset_stripe_client():
    global _stripe_client
    _stripe_client = None


def stripe_field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from a Stripe object or a plain dict"""
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def is_downgrade(current_plan: Optional[str], new_plan: str) -> bool:
    return PLAN_ORDER.get(new_plan, 0) < PLAN_ORDER.get(current_plan or "free", 0)


class BillingService:
    """Plan selection and customer portal for the caller"""

    def __init__(self, supabase: Client, stripe_client: stripe.StripeClient):
        self.supabase = supabase
        self.stripe = stripe_client

    def _get_billing_profile(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("profiles")\
            .select("stripe_customer_id, stripe_subscription_id, plan")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else {}

    def _ensure_customer(self, user: Dict[str, Any], profile: Dict[str, Any]) -> str:
        if profile.get("stripe_customer_id"):
            return profile["stripe_customer_id"]
        customer = self.stripe.customers.create(params={
            "email": user.get("email"),
            "metadata": {"supabase_user_id": user["id"]},
        })
        self.supabase.table("profiles")\
            .update({"stripe_customer_id": customer["id"]})\
            .eq("id", user["id"])\
            .execute()
        logger.info(f"Created Stripe customer for user {user['id']}")
        return customer["id"]

    def _update_subscription(self, profile: Dict[str, Any], plan: str, price_id: str) -> bool:
        """
        Switch an existing active subscription to the new price.

        Downgrades are invoiced immediately, upgrades prorated. Returns False
        when the subscription is missing, no longer active or cannot be updated,
        so a new checkout session is opened instead.
        """
        subscription_id = profile["stripe_subscription_id"]
        try:
            subscription = self.stripe.subscriptions.retrieve(subscription_id)
            if stripe_field(subscription, "status") not in ACTIVE_SUBSCRIPTION_STATUSES:
                return False

            item_id = subscription["items"]["data"][0]["id"]
            self.stripe.subscriptions.update(subscription_id, params={
                "items": [{"id": item_id, "price": price_id}],
                "proration_behavior": "always_invoice" if is_downgrade(profile.get("plan"), plan) else "create_prorations",
            })
        except stripe.StripeError as e:
            logger.info(f"Existing subscription {subscription_id} not usable ({e}), creating checkout session")
            return False
        return True

    def select_plan(self, user: Dict[str, Any], plan: Optional[str], interval: Optional[str]) -> Dict[str, Any]:
        if not plan or not interval:
            raise HTTPException(status_code=400, detail="Plan et intervalle requis")
        price_id = get_price_id(plan, interval)
        if not price_id:
            raise HTTPException(status_code=400, detail="Configuration de prix manquante")

        try:
            profile = self._get_billing_profile(user["id"])
            customer_id = self._ensure_customer(user, profile)

            if profile.get("stripe_subscription_id") and self._update_subscription(profile, plan, price_id):
                return {"success": True, "message": "Abonnement mis à jour", "action": "updated"}

            session = self.stripe.checkout.sessions.create(params={
                "customer": customer_id,
                "mode": "subscription",
                "payment_method_types": ["card"],
                "line_items": [{"price": price_id, "quantity": 1}],
                "success_url": f"{settings.app_url}/account/subscription?success=true",
                "cancel_url": f"{settings.app_url}/pricing?canceled=true",
                "allow_promotion_codes": True,
                "billing_address_collection": "auto",
                "metadata": {"supabase_user_id": user["id"]},
                "subscription_data": {"metadata": {"supabase_user_id": user["id"]}},
            })
            return {"url": session["url"], "action": "checkout"}
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating checkout session: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la création de la session de paiement")

    def create_portal_session(self, user_id: str) -> Dict[str, Any]:
        profile = self._get_billing_profile(user_id)
        if not profile.get("stripe_customer_id"):
            raise HTTPException(status_code=400, detail="Aucun abonnement trouvé")
        try:
            session = self.stripe.billing_portal.sessions.create(params={
                "customer": profile["stripe_customer_id"],
                "return_url": f"{settings.app_url}/account/subscription",
            })
        except Exception as e:
            logger.error(f"Error creating portal session: {e}")
            raise HTTPException(status_code=500, detail="Erreur lors de la création de la session")
        return {"url": session["url"]}
