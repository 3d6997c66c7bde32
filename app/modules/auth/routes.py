from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from app.config.settings import settings
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.modules.auth.service import AuthService
from app.core.dependencies import ACCESS_TOKEN_COOKIE, get_current_user, get_request_supabase
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])

SESSION_MAX_AGE = 60 * 60 * 24 * 7


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def set_session_cookie(response: Response, access_token: str):
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=access_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
        path="/",
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user (confirmation email sent by Supabase)"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service)
):
    """Login, get access token and session cookie"""
    token = service.login(login_data)
    set_session_cookie(response, token.access_token)
    return token


@router.post("/logout", status_code=200)
async def logout(response: Response):
    """Clear the session cookie"""
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    return {"message": "Déconnecté"}


@router.get("/me")
async def get_me(
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_request_supabase),
):
    """Get current authenticated user and their profile."""
    return {**current_user, "profile": AuthService(supabase).get_profile(current_user["id"])}


@router.get("/callback")
async def auth_callback(
    code: Optional[str] = None,
    next: str = "/library",
    service: AuthService = Depends(get_auth_service)
):
    """Email confirmation landing: exchange code, create profile, redirect into the app"""
    if not next.startswith("/"):
        next = "/library"
    token = service.exchange_code(code) if code else None
    if not token:
        return RedirectResponse(f"{settings.app_url}/login?error=callback_error", status_code=302)
    response = RedirectResponse(f"{settings.app_url}{next}", status_code=302)
    set_session_cookie(response, token.access_token)
    return response
