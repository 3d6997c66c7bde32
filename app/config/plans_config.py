"""
Plans Configuration
This config defines the subscription plans, their free-tier limits and prices.
Used by plan gating, quota checks and the billing module.
"""

from typing import Optional
from app.config.settings import settings

PLANS = {
    "free": {
        "name": "Free",
        "description": "Pour découvrir Tunora",
        "features": [
            "10 morceaux max",
            "3 covers max",
            "5 amis max",
            "20 morceaux wishlist",
        ],
        "limits": {
            "songs": 10,
            "covers": 3,
            "friends": 5,
            "wishlist": 20,
        },
    },
    "pro": {
        "name": "Pro",
        "description": "Pour les guitaristes sérieux",
        "features": [
            "Morceaux illimités",
            "Covers illimités",
            "Amis illimités",
            "Wishlist illimitée",
            "Stats avancées",
            "Badge Pro",
        ],
        "monthly": {"price": 9},
        "yearly": {"price": 86},
    },
    "band": {
        "name": "Band",
        "description": "Pour les groupes",
        "features": [
            "Tout ce qui est dans Pro",
            "Espaces groupe",
            "Setlists partagées",
            "Badge Band",
        ],
        "monthly": {"price": 19},
        "yearly": {"price": 182},
    },
}

# Rank used to tell an upgrade from a downgrade
PLAN_ORDER = {"free": 0, "pro": 1, "band": 2}

PAID_PLANS = ["pro", "band"]
BILLING_INTERVALS = ["monthly", "yearly"]


def get_free_limit(resource: str) -> int:
    """Return the free-tier cap for songs, covers, friends or wishlist."""
    return PLANS["free"]["limits"][resource]


def get_price_id(plan: str, interval: str) -> Optional[str]:
    """Return the Stripe price id configured for (plan, interval), None for free/unknown."""
    if plan not in PAID_PLANS or interval not in BILLING_INTERVALS:
        return None
    return getattr(settings, f"stripe_price_{plan}_{interval}", None) or None


def get_plan_from_price_id(price_id: Optional[str]) -> str:
    for plan in PAID_PLANS:
        for interval in BILLING_INTERVALS:
            configured = get_price_id(plan, interval)
            if configured and configured == price_id:
                return plan
    return "free"


def get_yearly_savings(plan: str) -> int:
    plan_config = PLANS.get(plan, {})
    if "monthly" not in plan_config or "yearly" not in plan_config:
        return 0
    return plan_config["monthly"]["price"] * 12 - plan_config["yearly"]["price"]


def get_plan_catalog() -> dict:
    """Return plans with yearly savings (for the pricing page)"""
    catalog = {}
    for key, plan_config in PLANS.items():
        catalog[key] = {**plan_config, "yearly_savings": get_yearly_savings(key)}
    return {"plans": catalog, "order": PLAN_ORDER}
