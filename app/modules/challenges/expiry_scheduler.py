import asyncio
import logging
from app.config.settings import settings
from app.database.supabase_client import get_service_supabase
from app.modules.challenges.service import ChallengeService
from app.modules.notifications.service import PushService, PushNotifier

logger = logging.getLogger(__name__)


async def check_and_complete_expired_challenges():
    """Close active challenges whose end date has passed and announce the result."""
    try:
        supabase = get_service_supabase()
        service = ChallengeService(supabase, PushNotifier(PushService(supabase)))
        expired = service.get_expired_challenges()
        if not expired:
            logger.debug("No expired challenges found")
            return
        logger.info(f"Found {len(expired)} expired challenge(s) to complete")
        for challenge in expired:
            try:
                service.complete_challenge(challenge["id"])
            except Exception as e:
                logger.error(f"Error completing challenge {challenge['id']}: {str(e)}")
    except Exception as e:
        logger.error(f"Error in challenge expiry scheduler: {str(e)}")


async def challenge_expiry_loop():
    """Background task that periodically completes expired challenges"""
    while True:
        try:
            await check_and_complete_expired_challenges()
        except Exception as e:
            logger.error(f"Error in challenge expiry loop: {str(e)}")

        await asyncio.sleep(settings.challenge_expiry_interval_seconds)
