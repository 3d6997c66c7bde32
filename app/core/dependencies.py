"""
Core dependencies for route protection, plan gating and membership checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.plans_config import PAID_PLANS
from app.database.supabase_client import SupabaseClient, get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Bearer token from the Authorization header, falling back to the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Non authentifié"
    )


def get_current_user(
    token: str = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_request_supabase(token: str = Depends(get_access_token)) -> Client:
    """Supabase client acting as the caller (row-level security applies)"""
    return SupabaseClient.for_user(token)


def get_user_plan(user_id: str, supabase: Client) -> str:
    """Return the caller's plan; a missing profile counts as free."""
    try:
        result = supabase.table("profiles")\
            .select("plan")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
    except Exception as e:
        logger.error(f"Error getting user plan: {e}")
        return "free"
    if not result.data:
        return "free"
    return result.data[0].get("plan") or "free"


def is_free_plan(user_id: str, supabase: Client) -> bool:
    return get_user_plan(user_id, supabase) == "free"


def require_plan(allowed_plans: List[str], detail: str):
    """Factory function to create plan check dependency"""
    def check_plan(
        user_data: dict = Depends(get_current_user),
        supabase: Client = Depends(get_request_supabase)
    ) -> dict:
        """Dependency to check if user is on one of the allowed plans"""
        plan = get_user_plan(user_data["id"], supabase)
        if plan not in allowed_plans:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=detail
            )
        user_data["plan"] = plan
        return user_data
    return check_plan


require_paid_plan = require_plan(PAID_PLANS, "Fonctionnalité Pro/Band uniquement")


def is_band_member(band_id: str, user_id: str, supabase: Client) -> bool:
    result = supabase.table("band_members")\
        .select("id")\
        .eq("band_id", band_id)\
        .eq("user_id", user_id)\
        .limit(1)\
        .execute()
    return bool(result.data)


def check_band_member(band_id: str, user_id: str, supabase: Client) -> None:
    """Raise 403 unless the user belongs to the band"""
    if not is_band_member(band_id, user_id, supabase):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tu n'es pas membre de ce groupe"
        )


def get_friendship(user_id: str, other_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    """Return the friendship row between two users in either direction, if any"""
    result = supabase.table("friendships")\
        .select("*")\
        .or_(
            f"and(requester_id.eq.{user_id},addressee_id.eq.{other_id}),"
            f"and(requester_id.eq.{other_id},addressee_id.eq.{user_id})"
        )\
        .limit(1)\
        .execute()
    return result.data[0] if result.data else None


def get_accepted_friend_ids(user_id: str, supabase: Client) -> List[str]:
    result = supabase.table("friendships")\
        .select("requester_id, addressee_id")\
        .eq("status", "accepted")\
        .or_(f"requester_id.eq.{user_id},addressee_id.eq.{user_id}")\
        .execute()
    return [
        f["addressee_id"] if f["requester_id"] == user_id else f["requester_id"]
        for f in result.data or []
    ]


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Current user, or None instead of a 401 (redirect-based flows)"""
    try:
        token = get_access_token(request, credentials)
        return auth_service.get_current_user(token)
    except HTTPException:
        return None
