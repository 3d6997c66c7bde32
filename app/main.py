import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config.settings import settings
from app.modules.auth import routes as auth_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.songs import routes as songs_routes
from app.modules.wishlist import routes as wishlist_routes
from app.modules.playlists import routes as playlists_routes
from app.modules.practice import routes as practice_routes
from app.modules.covers import routes as covers_routes
from app.modules.bands import routes as bands_routes
from app.modules.setlists import routes as setlists_routes
from app.modules.jam import routes as jam_routes
from app.modules.friends import routes as friends_routes
from app.modules.feed import routes as feed_routes
from app.modules.challenges import routes as challenges_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.audio import routes as audio_routes
from app.modules.spotify import routes as spotify_routes
from app.modules.tabs import routes as tabs_routes
from app.modules.billing import routes as billing_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Requête invalide", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    content = {"error": "Une erreur inattendue est survenue"}
    if not settings.is_production:
        content["detail"] = str(exc)
    return JSONResponse(status_code=500, content=content)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(songs_routes.router, prefix="/api/v1")
app.include_router(wishlist_routes.router, prefix="/api/v1")
app.include_router(playlists_routes.router, prefix="/api/v1")
app.include_router(practice_routes.router, prefix="/api/v1")
app.include_router(covers_routes.router, prefix="/api/v1")
app.include_router(bands_routes.router, prefix="/api/v1")
app.include_router(setlists_routes.router, prefix="/api/v1")
app.include_router(jam_routes.router, prefix="/api/v1")
app.include_router(friends_routes.router, prefix="/api/v1")
app.include_router(feed_routes.router, prefix="/api/v1")
app.include_router(challenges_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(audio_routes.router, prefix="/api/v1")
app.include_router(spotify_routes.router, prefix="/api/v1")
app.include_router(tabs_routes.router, prefix="/api/v1")
app.include_router(billing_routes.router, prefix="/api/v1")

background_tasks = set()


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")

    if settings.challenge_scheduler_enabled:
        from app.modules.challenges.expiry_scheduler import challenge_expiry_loop
        task = asyncio.create_task(challenge_expiry_loop())
        background_tasks.add(task)
        logger.info(
            f"Challenge expiry scheduler started - checking every {settings.challenge_expiry_interval_seconds}s"
        )


@app.on_event("shutdown")
async def shutdown_event():
    for task in background_tasks:
        task.cancel()
    background_tasks.clear()
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to tunora-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe"""
    return {"status": "ready"}
