import logging

from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from clasificados.api.deps import get_settings
from clasificados.core.config import Settings
from clasificados.core.errors import InvalidInput
from clasificados.core.telegram import is_subscribed
from clasificados.schemas.subscription import SubscriptionCheck, SubscriptionStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscription", tags=["Subscription"])

DEV_SKIP_WARNING = "Channel check skipped in development mode"


@router.post("/check", response_model=SubscriptionStatus)
def check_subscription(
    data: SubscriptionCheck,
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """Whether the user follows the channel the Mini App requires."""
    if not data.userId:
        raise InvalidInput("User ID is required")

    channel = settings.REQUIRED_CHANNEL
    api = request.app.state.bot_api
    if api is None:
        if settings.is_development:
            logger.warning("No bot token configured, skipping channel check")
            return SubscriptionStatus(subscribed=True, channel=channel, warning=DEV_SKIP_WARNING)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Subscription check unavailable", "subscribed": False, "channel": channel},
        )

    try:
        subscribed = is_subscribed(api, channel, data.userId)
    except TelegramAPIError as e:
        logger.error("Error checking subscription for %s: %s", data.userId, e)
        # Channel missing or bot not in it; let development builds through
        if isinstance(e, TelegramBadRequest) and settings.is_development:
            logger.warning("Development mode: allowing access without channel check")
            return SubscriptionStatus(subscribed=True, channel=channel, warning=DEV_SKIP_WARNING)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Error checking subscription", "subscribed": False, "channel": channel},
        )

    return SubscriptionStatus(subscribed=subscribed, channel=channel)
