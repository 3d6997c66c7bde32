import hashlib
import logging
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.config.settings import settings
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        existing = self.supabase.table("profiles")\
            .select("id")\
            .eq("username", register_data.username)\
            .limit(1)\
            .execute()
        if existing.data:
            raise HTTPException(status_code=400, detail="Ce nom d'utilisateur est déjà pris")

        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {
                        "username": register_data.username,
                        "display_name": register_data.username,
                    },
                    "email_redirect_to": f"{settings.app_url}/api/v1/auth/callback",
                }
            })
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower():
                raise HTTPException(status_code=400, detail="Cet email est déjà utilisé")
            raise HTTPException(status_code=400, detail=error_message)

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Inscription impossible")

        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            message="Vérifie ta boîte mail pour confirmer ton compte"
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if "invalid login credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Email ou mot de passe incorrect")
            if "email not confirmed" in error_message.lower():
                raise HTTPException(status_code=401, detail="Confirme ton email avant de te connecter")
            raise HTTPException(status_code=401, detail=error_message)

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Email ou mot de passe incorrect")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email
        )

    def exchange_code(self, code: str) -> Optional[TokenResponse]:
        """Exchange an email-confirmation code for a session and create the profile on first sign-in"""
        try:
            auth_response = self.supabase.auth.exchange_code_for_session({"auth_code": code})
        except Exception as e:
            logger.warning(f"Auth code exchange failed: {e}")
            return None

        if not auth_response.user or not auth_response.session:
            return None

        user = auth_response.user
        metadata = user.user_metadata or {}
        existing = self.supabase.table("profiles")\
            .select("id")\
            .eq("id", user.id)\
            .limit(1)\
            .execute()
        if not existing.data:
            self.supabase.table("profiles").insert({
                "id": user.id,
                "username": metadata.get("username"),
                "display_name": metadata.get("display_name"),
                "plan": "free",
            }).execute()
            logger.info(f"Profile created for user {user.id}")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            user_id=user.id,
            email=user.email or "",
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return dict(user_data)
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Non authentifié")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "created_at": user.created_at,
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return dict(user_data)
        except HTTPException:
            raise
        except Exception as e:
            logger.debug(f"Token validation failed: {e}")
            raise HTTPException(status_code=401, detail="Non authentifié")

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

